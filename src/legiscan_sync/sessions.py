import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from .cache import CacheStore, is_fresh, utcnow
from .exceptions import LegiScanError
from .legiscan_client import LegiScanClient
from .models import Session
from .utils import logger_setup


def session_cache_key(state: str) -> str:
    return f"sessions:{state.upper()}"


def rank_sessions(sessions: List[Session]) -> List[Session]:
    """Latest year_end first; regular sessions ahead of special ones on ties."""
    return sorted(sessions, key=lambda s: (-s.year_end, s.is_special))


class SessionResolver:
    """Finds the current legislative session for a state, cached for ``ttl``."""

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
        self.logger = logger_setup(logger_name="LegiScan Sessions", log_level=log_level)

    def resolve_session(self, state: str) -> Optional[Session]:
        key = session_cache_key(state)
        now = self.clock()

        cached = self.cache.get(key)
        if is_fresh(cached, self.ttl, now) and cached.payload:
            self.logger.debug(f"Session cache hit for {state}")
            return Session.from_dict(cached.payload[0])

        try:
            sessions = self.client.get_session_list(state.upper())
        except LegiScanError as e:
            self.logger.warning(f"Could not list sessions for {state}: {e}")
            return None

        if not sessions:
            self.logger.warning(f"LegiScan returned no sessions for {state}")
            return None

        ranked = rank_sessions(sessions)
        self.cache.set(key, [s.to_dict() for s in ranked], now)
        best = ranked[0]
        self.logger.info(f"Current session for {state}: {best.session_id} ({best.session_name})")
        return best
