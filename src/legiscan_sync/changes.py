import logging
from datetime import datetime
from typing import Callable, Dict, Optional

from .cache import CacheStore, utcnow
from .exceptions import LegiScanError
from .legiscan_client import LegiScanClient
from .models import ChangeSet
from .utils import logger_setup, to_int


def hashes_cache_key(session_id: int) -> str:
    return f"hashes:{session_id}"


class ChangeDetector:
    """
    Classifies every bill in a session as changed or unchanged by comparing
    its LegiScan change_hash with the last hash we know for it.

    One getMasterListRaw call covers the whole session; only changed bills
    ever need their roll calls re-derived.
    """

    def __init__(
        self,
        client: LegiScanClient,
        cache: Optional[CacheStore] = None,
        clock: Callable[[], datetime] = utcnow,
        log_level: int = logging.INFO,
    ):
        self.client = client
        self.cache = cache
        self.clock = clock
        self.logger = logger_setup(logger_name="LegiScan Changes", log_level=log_level)

    def detect_changes(self, session_id: int, prior_hash_index: Dict[int, str]) -> Optional[ChangeSet]:
        try:
            bills = self.client.get_master_list_raw(session_id)
        except LegiScanError as e:
            self.logger.warning(f"Could not fetch master list for session {session_id}: {e}")
            return None

        # absence from the new index is not evidence of deletion; keep every known bill
        result = ChangeSet(fresh_hash_index=dict(prior_hash_index))
        for bill in bills:
            if not bill.bill_id:
                continue
            if prior_hash_index.get(bill.bill_id) == bill.change_hash:
                result.unchanged_bill_ids.add(bill.bill_id)
            else:
                result.changed_bills.append(bill)
                result.fresh_hash_index[bill.bill_id] = bill.change_hash

        self.logger.info(
            f"Session {session_id}: {len(bills)} bills, "
            f"{len(result.changed_bills)} changed, {len(result.unchanged_bill_ids)} unchanged"
        )
        self._record_observed(session_id, {b.bill_id: b.change_hash for b in bills})
        return result

    def _record_observed(self, session_id: int, observed_now: Dict[int, str]) -> None:
        """Merge this fetch into the session-wide index of the latest hash seen per bill."""
        if self.cache is None:
            return
        key = hashes_cache_key(session_id)
        cached = self.cache.get(key)
        observed: Dict[str, str] = {}
        if cached and isinstance(cached.payload, dict):
            observed.update({str(k): v for k, v in cached.payload.items() if to_int(k) is not None})
        observed.update({str(k): v for k, v in observed_now.items()})
        self.cache.set(key, observed, self.clock())
