import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from .cache import CacheStore, is_fresh, utcnow
from .exceptions import LegiScanError
from .legiscan_client import LegiScanClient
from .models import RosterEntry
from .utils import logger_setup


def roster_cache_key(session_id: int) -> str:
    return f"roster:{session_id}"


def _norm(text: Optional[str]) -> str:
    return " ".join(str(text or "").split()).lower()


def match_person(roster: List[RosterEntry], full_name: str, last_name_hint: Optional[str] = None) -> List[RosterEntry]:
    """
    Return the roster entries matching ``full_name``, best rule first.

    Rules, each tried over the whole roster before the next:
      1. roster full name
      2. "{first_name} {last_name}"
      3. last name alone (hint, else the last word of ``full_name``)

    Only the first rule that produces a hit contributes; its hits keep roster order.
    """
    target = _norm(full_name)
    if target:
        hits = [p for p in roster if _norm(p.full_name) == target]
        if hits:
            return hits
        hits = [p for p in roster if _norm(f"{p.first_name} {p.last_name}") == target]
        if hits:
            return hits

    last = _norm(last_name_hint) or (target.split(" ")[-1] if target else "")
    if not last:
        return []
    return [p for p in roster if _norm(p.last_name) == last]


class RosterResolver:
    """Maps a legislator's display name to a LegiScan people_id within a session."""

    def __init__(
        self,
        client: LegiScanClient,
        cache: CacheStore,
        ttl: timedelta = timedelta(days=7),
        clock: Callable[[], datetime] = utcnow,
        log_level: int = logging.INFO,
    ):
        self.client = client
        self.cache = cache
        self.ttl = ttl
        self.clock = clock
        self.logger = logger_setup(logger_name="LegiScan Roster", log_level=log_level)

    def get_roster(self, session_id: int) -> Optional[List[RosterEntry]]:
        key = roster_cache_key(session_id)
        now = self.clock()

        cached = self.cache.get(key)
        if is_fresh(cached, self.ttl, now) and cached.payload:
            self.logger.debug(f"Roster cache hit for session {session_id}")
            return [RosterEntry.from_dict(p) for p in cached.payload]

        try:
            roster = self.client.get_session_people(session_id)
        except LegiScanError as e:
            self.logger.warning(f"Could not load roster for session {session_id}: {e}")
            return None

        if not roster:
            self.logger.warning(f"LegiScan returned an empty roster for session {session_id}")
            return None

        self.cache.set(key, [p.to_dict() for p in roster], now)
        return roster

    def resolve_person(self, session_id: int, full_name: str, last_name_hint: Optional[str] = None) -> Optional[int]:
        roster = self.get_roster(session_id)
        if not roster:
            return None

        hits = match_person(roster, full_name, last_name_hint)
        if not hits:
            self.logger.info(f"No roster match for '{full_name}' in session {session_id}")
            return None
        if len(hits) > 1:
            # first in roster order wins; integrators may cross-check district/chamber
            self.logger.warning(
                f"Ambiguous roster match for '{full_name}' in session {session_id}: "
                f"{[p.person_id for p in hits]}; using {hits[0].person_id}"
            )
        return hits[0].person_id
