#%%
from __future__ import annotations

import logging
import os
import threading
from typing import Any, Dict, List, Optional

import requests
from requests import RequestException

from .config import DEFAULT_BASE_URL, SyncConfig
from .exceptions import (LegiScanAPIError, LegiScanNotConfigured,
                         LegiScanPayloadError)
from .models import (BillHashEntry, RollCall, RollCallRef, RosterEntry,
                     Session)
from .rate_gate import RateGate
from .utils import logger_setup, normalize_date, to_int

#%%


class LegiScanClient:
    """
    Typed wrapper for the LegiScan pull API with a shared politeness throttle.

    Every call passes through the RateGate and is attempted exactly once; a
    failure raises ``LegiScanAPIError`` and the caller decides what to skip.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 15.0,
        gate: Optional[RateGate] = None,
        min_interval: float = 1.1,  # LegiScan allows roughly one request per second
        log_level: int = logging.INFO,
    ):
        self.api_key = api_key or os.getenv("LEGISCAN_API_KEY") or os.getenv("LEGISCAN_API") or os.getenv("LEGISCAN_KEY")
        self.base_url = base_url
        self.timeout = timeout
        self.gate = gate or RateGate(min_interval=min_interval)
        self.session = requests.Session()
        self.session.headers.update({"Accept": "application/json"})
        self.request_count = 0
        self._count_lock = threading.Lock()
        self.logger = logger_setup(logger_name="LegiScan Client", log_level=log_level)

        if not self.api_key:
            self.logger.info("LegiScan API key not configured; LegiScan vote sync is disabled.")

    @classmethod
    def from_config(cls, config: SyncConfig, **kwargs) -> "LegiScanClient":
        return cls(
            api_key=config.api_key,
            base_url=config.base_url,
            timeout=config.timeout,
            min_interval=config.min_interval,
            **kwargs,
        )

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    # ------------- core request helpers -------------
    def _get(self, op: str, **params: Any) -> Dict[str, Any]:
        if not self.enabled:
            raise LegiScanNotConfigured("Set LEGISCAN_API_KEY to enable LegiScan calls.")

        p = {"key": self.api_key, "op": op}
        p.update({k: v for k, v in params.items() if v is not None})

        self.gate.acquire()
        with self._count_lock:
            self.request_count += 1
            n = self.request_count
        self.logger.debug(f"LegiScan request #{n}: op={op} params={params}")
        try:
            resp = self.session.get(self.base_url, params=p, timeout=self.timeout)
        except RequestException as e:
            raise LegiScanAPIError(op, f"{type(e).__name__}: {e}") from e

        if not (200 <= resp.status_code < 300):
            raise LegiScanAPIError(op, f"HTTP {resp.status_code}: {resp.text[:200]}")

        try:
            data = resp.json()
        except ValueError as e:
            raise LegiScanAPIError(op, f"invalid JSON: {resp.text[:100]}") from e

        if not isinstance(data, dict):
            raise LegiScanPayloadError(op, f"expected an object, got {type(data).__name__}")

        status = str(data.get("status", "")).upper()
        if status != "OK":
            alert = data.get("alert")
            message = alert.get("message") if isinstance(alert, dict) else None
            raise LegiScanAPIError(op, f"status={status or 'missing'} message={message or ''}")
        return data

    @staticmethod
    def _extract_items(block) -> list:
        """
        Normalize LegiScan collections:
        - [...]                      -> [...]
        - {"0": {...}, "1": {...}}   -> [{...}, {...}]
        - None/other                 -> []
        Non-dict members (and metadata such as a masterlist "session" block)
        are left to the caller to filter.
        """
        if block is None:
            return []
        if isinstance(block, list):
            return block
        if isinstance(block, dict):
            return list(block.values())
        return []

    @staticmethod
    def _require(data: Dict[str, Any], op: str, key: str):
        value = data.get(key)
        if value is None:
            raise LegiScanPayloadError(op, f"payload has no '{key}' block")
        return value

    # ------------- converters -------------
    @staticmethod
    def _dict_to_session(s: Dict[str, Any], state: Optional[str] = None) -> Session:
        return Session(
            session_id=int(s["session_id"]),
            state=state,
            year_start=to_int(s.get("year_start"), 0),
            year_end=to_int(s.get("year_end"), 0),
            is_special=bool(to_int(s.get("special"), 0)),
            session_name=s.get("session_name"),
            session_title=s.get("session_title"),
            raw=s,
        )

    @staticmethod
    def _dict_to_person(p: Dict[str, Any]) -> RosterEntry:
        return RosterEntry(
            person_id=int(p["people_id"]),
            full_name=p.get("name") or "",
            first_name=p.get("first_name") or "",
            last_name=p.get("last_name") or "",
            role=p.get("role"),
            party=p.get("party"),
            district=p.get("district"),
            raw=p,
        )

    @staticmethod
    def _parse_passed(value: Any) -> Optional[bool]:
        # LegiScan reports 1 for passed; 2 marks a failed vote
        flag = to_int(value)
        if flag == 1:
            return True
        if flag == 2:
            return False
        return None

    # ------------- sessions & people -------------
    def get_session_list(self, state: str) -> List[Session]:
        op = "getSessionList"
        data = self._get(op, state=state)
        try:
            return [self._dict_to_session(s, state=state)
                    for s in self._extract_items(self._require(data, op, "sessions"))
                    if isinstance(s, dict)]
        except (KeyError, TypeError, ValueError) as e:
            raise LegiScanPayloadError(op, f"malformed session: {e!r}") from e

    def get_session_people(self, session_id: int) -> List[RosterEntry]:
        op = "getSessionPeople"
        data = self._get(op, id=session_id)
        block = self._require(data, op, "sessionpeople")
        if not isinstance(block, dict):
            raise LegiScanPayloadError(op, "'sessionpeople' is not an object")
        try:
            return [self._dict_to_person(p)
                    for p in self._extract_items(block.get("people"))
                    if isinstance(p, dict)]
        except (KeyError, TypeError, ValueError) as e:
            raise LegiScanPayloadError(op, f"malformed person: {e!r}") from e

    # ------------- bills -------------
    def get_master_list_raw(self, session_id: int) -> List[BillHashEntry]:
        """Every bill in the session with its change_hash (one call, no bill bodies)."""
        op = "getMasterListRaw"
        data = self._get(op, id=session_id)
        masterlist = self._require(data, op, "masterlist")
        if not isinstance(masterlist, (dict, list)):
            raise LegiScanPayloadError(op, "'masterlist' is not a collection")

        out: List[BillHashEntry] = []
        for item in self._extract_items(masterlist):
            # skips the "session" metadata block and entries lacking a bill id
            if not isinstance(item, dict):
                continue
            bill_id = to_int(item.get("bill_id"))
            if not bill_id:
                continue
            out.append(BillHashEntry(
                bill_id=bill_id,
                number=str(item.get("number") or ""),
                title=str(item.get("title") or ""),
                change_hash=str(item.get("change_hash") or ""),
                last_action_date=normalize_date(item.get("last_action_date")),
            ))
        return out

    def get_bill_roll_calls(self, bill_id: int) -> List[RollCallRef]:
        """Roll calls enumerated by a bill's detail record."""
        op = "getBill"
        data = self._get(op, id=bill_id)
        bill = self._require(data, op, "bill")
        if not isinstance(bill, dict):
            raise LegiScanPayloadError(op, "'bill' is not an object")

        refs: List[RollCallRef] = []
        for v in self._extract_items(bill.get("votes")):
            if not isinstance(v, dict):
                continue
            rc_id = to_int(v.get("roll_call_id"))
            if not rc_id:
                continue
            refs.append(RollCallRef(
                roll_call_id=rc_id,
                date=normalize_date(v.get("date")),
                description=str(v.get("desc") or ""),
            ))
        return refs

    # ------------- votes -------------
    def get_roll_call(self, roll_call_id: int) -> RollCall:
        op = "getRollCall"
        data = self._get(op, id=roll_call_id)
        rc = self._require(data, op, "roll_call")
        if not isinstance(rc, dict):
            raise LegiScanPayloadError(op, "'roll_call' is not an object")

        votes: Dict[int, str] = {}
        for v in self._extract_items(rc.get("votes")):
            if not isinstance(v, dict):
                continue
            people_id = to_int(v.get("people_id"))
            if people_id is None:
                continue
            votes[people_id] = str(v.get("vote_text") or "")

        return RollCall(
            roll_call_id=to_int(rc.get("roll_call_id"), roll_call_id),
            bill_id=to_int(rc.get("bill_id")),
            date=normalize_date(rc.get("date")),
            description=str(rc.get("desc") or ""),
            chamber=rc.get("chamber"),
            yea=to_int(rc.get("yea"), 0),
            nay=to_int(rc.get("nay"), 0),
            not_voting=to_int(rc.get("nv"), 0),
            absent=to_int(rc.get("absent"), 0),
            passed=self._parse_passed(rc.get("passed")),
            votes=votes,
        )
