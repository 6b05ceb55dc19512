"""
Incremental sync of one state legislator's LegiScan voting history.

Flow per sync:
  1. resolve the current session and the legislator's people_id
  2. serve the cached aggregate while it is fresh (no remote calls)
  3. diff the session master list against the stored change_hash index
  4. keep stored votes of unchanged bills as-is
  5. re-derive the most recently acted-upon changed bills (bounded per sync)
  6. merge, dedup by roll call, sort newest first, persist

A changed bill's hash is committed only when the bill was fully handled, so
failed, skipped and capped bills are picked up again on the next sync.
"""
import logging
import threading
from concurrent.futures import Future
from dataclasses import replace
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Set

from .cache import CacheStore, is_fresh, utcnow
from .changes import ChangeDetector
from .config import SyncConfig
from .exceptions import LegiScanError
from .legiscan_client import LegiScanClient
from .models import (BillHashEntry, Legislator, RollCall, RollCallRef,
                     SyncState, VoteRecord, chamber_label, normalize_position,
                     result_label)
from .roster import RosterResolver
from .sessions import SessionResolver
from .utils import date_sort_key, logger_setup

VOTE_URL = "https://legiscan.com/votes/{roll_call_id}"


def votes_cache_key(legislator_id: str) -> str:
    return f"votes:{legislator_id}"


def state_cache_key(legislator_id: str) -> str:
    return f"rollcalls:{legislator_id}"


def sort_votes(votes: Iterable[VoteRecord]) -> List[VoteRecord]:
    """Newest first; roll call id breaks ties so repeated syncs order identically."""
    return sorted(votes, key=lambda v: (date_sort_key(v.date), v.source_roll_call_id), reverse=True)


def build_vote_record(
    legislator: Legislator,
    bill: BillHashEntry,
    ref: RollCallRef,
    roll_call: RollCall,
    vote_text: str,
) -> VoteRecord:
    roll_call_id = ref.roll_call_id
    return VoteRecord(
        roll_number=str(roll_call_id),
        question=roll_call.description or ref.description or f"Vote on {bill.number}",
        date=roll_call.date or ref.date,
        result=result_label(roll_call.passed),
        position=normalize_position(vote_text),
        bill_number=bill.number,
        bill_title=bill.title,
        chamber=chamber_label(legislator.chamber or roll_call.chamber),
        yea_count=roll_call.yea,
        nay_count=roll_call.nay,
        not_voting_count=roll_call.not_voting + roll_call.absent,
        source_roll_call_id=roll_call_id,
        source_bill_id=bill.bill_id,
        vote_url=VOTE_URL.format(roll_call_id=roll_call_id),
        legislator_id=legislator.legislator_id,
        legislator_name=legislator.full_name,
    )


def refresh_bill_fields(record: VoteRecord, bill: BillHashEntry) -> VoteRecord:
    """Carry a changed bill's current number and title onto a stored vote on it."""
    question = record.question
    if question == f"Vote on {record.bill_number}":
        question = f"Vote on {bill.number}"
    return replace(record, bill_number=bill.number, bill_title=bill.title, question=question)


class VoteSynchronizer:
    """
    Orchestrates the session, roster and change-hash lookups into one
    deduplicated, date-ordered list of a legislator's votes.

    ``sync`` never raises. It returns ``None`` when LegiScan data is
    unavailable for the legislator (no key configured, no session, no roster
    match, unexpected error) so the caller can fall back to another source.
    """

    def __init__(
        self,
        client: LegiScanClient,
        cache: CacheStore,
        config: Optional[SyncConfig] = None,
        clock: Callable[[], datetime] = utcnow,
        log_level: int = logging.INFO,
    ):
        self.client = client
        self.cache = cache
        self.config = config or SyncConfig()
        self.clock = clock
        self.sessions = SessionResolver(client, cache, ttl=self.config.session_ttl, clock=clock, log_level=log_level)
        self.roster = RosterResolver(client, cache, ttl=self.config.roster_ttl, clock=clock, log_level=log_level)
        self.changes = ChangeDetector(client, cache, clock=clock, log_level=log_level)
        self.logger = logger_setup(logger_name="LegiScan Sync", log_level=log_level)

        # legislator_id -> future of the sync currently running for it
        self._in_flight: Dict[str, Future] = {}
        self._lock = threading.Lock()

    # ------------- public entry point -------------
    def sync(self, legislator: Legislator) -> Optional[List[VoteRecord]]:
        key = legislator.legislator_id
        with self._lock:
            future = self._in_flight.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._in_flight[key] = future

        if not owner:
            self.logger.debug(f"Joining in-flight sync for {key}")
            result = future.result()
            return list(result) if result is not None else None

        try:
            result = self._sync_safely(legislator)
            future.set_result(result)
        except BaseException as e:
            future.set_exception(e)
            raise
        finally:
            with self._lock:
                self._in_flight.pop(key, None)
        return result

    def _sync_safely(self, legislator: Legislator) -> Optional[List[VoteRecord]]:
        if not self.client.enabled:
            return None
        try:
            return self._sync(legislator)
        except Exception:
            self.logger.exception(f"LegiScan vote sync failed for {legislator.legislator_id}")
            return None

    # ------------- state -------------
    def load_state(self, legislator_id: str) -> SyncState:
        entry = self.cache.get(state_cache_key(legislator_id))
        if entry is None:
            return SyncState()
        try:
            return SyncState.from_dict(entry.payload)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            self.logger.warning(f"Discarding unreadable sync state for {legislator_id}: {e!r}")
            return SyncState()

    def _cached_votes(self, legislator_id: str, now: datetime) -> Optional[List[VoteRecord]]:
        entry = self.cache.get(votes_cache_key(legislator_id))
        if not is_fresh(entry, self.config.votes_ttl, now):
            return None
        payload = entry.payload
        if not isinstance(payload, dict) or payload.get("votes") is None:
            return None
        return [VoteRecord.from_dict(v) for v in payload["votes"]]

    def _persist(self, legislator_id: str, state: SyncState, now: datetime) -> None:
        self.cache.set(state_cache_key(legislator_id), state.to_dict(), now)
        self.cache.set(votes_cache_key(legislator_id), {"votes": [v.to_dict() for v in state.votes]}, now)

    # ------------- sync -------------
    def _sync(self, legislator: Legislator) -> Optional[List[VoteRecord]]:
        session = self.sessions.resolve_session(legislator.state)
        if session is None:
            return None
        person_id = self.roster.resolve_person(session.session_id, legislator.full_name, legislator.last_name)
        if person_id is None:
            return None

        now = self.clock()
        cached = self._cached_votes(legislator.legislator_id, now)
        if cached is not None:
            self.logger.debug(f"Fresh cached votes for {legislator.legislator_id}")
            return cached

        state = self.load_state(legislator.legislator_id)
        change_set = self.changes.detect_changes(session.session_id, state.hash_index)
        if change_set is None:
            # nothing can be classified; serve what we have and leave the cache untouched
            return sort_votes(state.votes)

        retained: Dict[int, VoteRecord] = {}
        rederive: Dict[int, VoteRecord] = {}
        for vote in state.votes:
            if vote.source_bill_id in change_set.unchanged_bill_ids:
                retained[vote.source_roll_call_id] = vote
            else:
                rederive[vote.source_roll_call_id] = vote

        fetched = set(state.fetched_roll_call_ids)
        hash_index = dict(state.hash_index)
        derived: Dict[int, VoteRecord] = {}

        bills = sorted(change_set.changed_bills, key=lambda b: date_sort_key(b.last_action_date), reverse=True)
        to_process = bills[:self.config.max_bills_per_sync]
        if len(bills) > len(to_process):
            self.logger.info(f"Processing {len(to_process)} of {len(bills)} changed bills; the rest wait for a later sync")

        requests_before = self.client.request_count
        for bill in to_process:
            if self._derive_bill(legislator, person_id, bill, fetched, rederive, derived):
                hash_index[bill.bill_id] = bill.change_hash

        dropped = [v for rc_id, v in rederive.items() if rc_id not in derived]
        if dropped:
            # make them discoverable again once their bill is re-derived
            fetched.difference_update(v.source_roll_call_id for v in dropped)
            self.logger.warning(
                f"Dropped {len(dropped)} stored votes for {legislator.legislator_id} pending re-derivation: "
                f"{sorted(v.source_roll_call_id for v in dropped)}"
            )

        merged = dict(retained)
        merged.update(derived)
        votes = sort_votes(merged.values())

        self._persist(legislator.legislator_id, SyncState(votes, hash_index, fetched), now)
        self.logger.info(
            f"Synced {legislator.legislator_id}: {len(votes)} votes "
            f"({len(retained)} retained, {len(derived)} derived) "
            f"using {self.client.request_count - requests_before} bill/roll-call requests"
        )
        return votes

    def _derive_bill(
        self,
        legislator: Legislator,
        person_id: int,
        bill: BillHashEntry,
        fetched: Set[int],
        rederive: Dict[int, VoteRecord],
        derived: Dict[int, VoteRecord],
    ) -> bool:
        """
        Rebuild the legislator's votes on one changed bill into ``derived``.

        Returns True when every roll call the bill enumerates was handled, which
        is the condition for committing the bill's new change_hash.
        """
        try:
            refs = self.client.get_bill_roll_calls(bill.bill_id)
        except LegiScanError as e:
            self.logger.warning(f"Skipping bill {bill.number} ({bill.bill_id}): {e}")
            return False

        complete = True
        for ref in refs:
            rc_id = ref.roll_call_id
            if rc_id in rederive:
                # the roll call itself is immutable; only the bill metadata can have moved
                derived[rc_id] = refresh_bill_fields(rederive[rc_id], bill)
                fetched.add(rc_id)
                continue
            if rc_id in fetched:
                continue

            try:
                roll_call = self.client.get_roll_call(rc_id)
            except LegiScanError as e:
                self.logger.warning(f"Skipping roll call {rc_id} on bill {bill.number}: {e}")
                complete = False
                continue

            fetched.add(rc_id)
            vote_text = roll_call.votes.get(person_id)
            if vote_text is None:
                continue
            derived[rc_id] = build_vote_record(legislator, bill, ref, roll_call, vote_text)
        return complete
