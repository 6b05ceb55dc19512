from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Set

from .utils import to_int


class Position:
    """Canonical vote positions. Any other raw vote text is kept as-is."""
    YEA = "Yea"
    NAY = "Nay"
    NOT_VOTING = "Not Voting"
    PRESENT = "Present"


_POSITIONS = {
    "Yea": Position.YEA,
    "Nay": Position.NAY,
    "NV": Position.NOT_VOTING,
    "Absent": Position.NOT_VOTING,
    "Present": Position.PRESENT,
}


def normalize_position(vote_text: str) -> str:
    return _POSITIONS.get(vote_text, vote_text)


def result_label(passed: Optional[bool]) -> str:
    if passed is True:
        return "Passed"
    if passed is False:
        return "Failed"
    return ""


def chamber_label(chamber: Optional[str]) -> str:
    """'Senate' for upper-chamber codes (upper, S, Senate), 'House' otherwise."""
    if chamber and str(chamber).strip().lower() in ("upper", "s", "senate"):
        return "Senate"
    return "House"


@dataclass
class Legislator:
    legislator_id: str                 # caller's id, used in cache keys
    state: str                         # two-letter jurisdiction code, e.g. "TX"
    full_name: str
    last_name: Optional[str] = None    # hint for the last-name fallback match
    chamber: Optional[str] = None      # "upper" / "lower" or a chamber code


@dataclass
class Session:
    session_id: int
    state: Optional[str] = None
    year_start: int = 0
    year_end: int = 0
    is_special: bool = False
    session_name: Optional[str] = None
    session_title: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Session":
        return cls(**d)


@dataclass
class RosterEntry:
    person_id: int
    full_name: str = ""
    first_name: str = ""
    last_name: str = ""
    role: Optional[str] = None         # "Rep" / "Sen"
    party: Optional[str] = None
    district: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "RosterEntry":
        return cls(**d)


@dataclass
class BillHashEntry:
    bill_id: int
    number: str = ""                   # display number, e.g. "HB 12"
    title: str = ""
    change_hash: str = ""
    last_action_date: str = ""


@dataclass
class RollCallRef:
    """One entry of a bill's vote list, as enumerated by the bill detail."""
    roll_call_id: int
    date: str = ""
    description: str = ""


@dataclass
class RollCall:
    roll_call_id: int
    bill_id: Optional[int] = None
    date: str = ""
    description: str = ""
    chamber: Optional[str] = None
    yea: int = 0
    nay: int = 0
    not_voting: int = 0
    absent: int = 0
    passed: Optional[bool] = None      # None when upstream did not report an outcome
    votes: Dict[int, str] = field(default_factory=dict)  # people_id -> raw vote text


@dataclass
class VoteRecord:
    roll_number: str
    question: str
    date: str
    result: str
    position: str
    bill_number: str
    bill_title: str
    chamber: str
    yea_count: int
    nay_count: int
    not_voting_count: int
    source_roll_call_id: int
    source_bill_id: int
    description: str = ""
    vote_url: Optional[str] = None
    legislator_id: Optional[str] = None
    legislator_name: Optional[str] = None
    level: str = "state"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "VoteRecord":
        return cls(**d)


@dataclass
class ChangeSet:
    changed_bills: List[BillHashEntry] = field(default_factory=list)
    unchanged_bill_ids: Set[int] = field(default_factory=set)
    fresh_hash_index: Dict[int, str] = field(default_factory=dict)


@dataclass
class SyncState:
    votes: List[VoteRecord] = field(default_factory=list)
    hash_index: Dict[int, str] = field(default_factory=dict)
    fetched_roll_call_ids: Set[int] = field(default_factory=set)

    def to_dict(self) -> Dict[str, Any]:
        # JSON-compatible: mapping keys as strings, sets as sorted lists
        return {
            "votes": [v.to_dict() for v in self.votes],
            "hashIndex": {str(k): v for k, v in self.hash_index.items()},
            "rollCallIds": sorted(self.fetched_roll_call_ids),
        }

    @classmethod
    def from_dict(cls, d: Optional[Dict[str, Any]]) -> "SyncState":
        if not d:
            return cls()
        hash_index = {}
        for k, v in (d.get("hashIndex") or {}).items():
            bill_id = to_int(k)
            if bill_id is not None:
                hash_index[bill_id] = v
        ids = {to_int(x) for x in (d.get("rollCallIds") or [])}
        return cls(
            votes=[VoteRecord.from_dict(v) for v in (d.get("votes") or [])],
            hash_index=hash_index,
            fetched_roll_call_ids={x for x in ids if x is not None},
        )
