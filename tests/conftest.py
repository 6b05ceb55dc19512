from datetime import datetime, timedelta, timezone

import pytest

from legiscan_sync import (BillHashEntry, InMemoryCacheStore, LegiScanAPIError,
                           Legislator, RollCall, RollCallRef, RosterEntry,
                           Session, SyncConfig, VoteSynchronizer)


class FakeClock:
    def __init__(self, start=datetime(2025, 5, 1, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


class FakeLegiScanClient:
    """In-process stand-in for LegiScanClient that records every call."""

    def __init__(self, sessions=None, people=None, master=None, bills=None, roll_calls=None, enabled=True):
        self.enabled = enabled
        self.sessions = sessions if sessions is not None else []
        self.people = people if people is not None else []
        self.master = master if master is not None else []
        self.bills = bills if bills is not None else {}
        self.roll_calls = roll_calls if roll_calls is not None else {}
        self.failing = set()    # op names, or (op, id) pairs, that raise
        self.calls = []
        self.request_count = 0
        self.on_master_list = None

    def _record(self, op, arg):
        self.calls.append((op, arg))
        self.request_count += 1
        if op in self.failing or (op, arg) in self.failing:
            raise LegiScanAPIError(op, "simulated failure")

    def ops(self, op):
        return [arg for o, arg in self.calls if o == op]

    def get_session_list(self, state):
        self._record("getSessionList", state)
        return list(self.sessions)

    def get_session_people(self, session_id):
        self._record("getSessionPeople", session_id)
        return list(self.people)

    def get_master_list_raw(self, session_id):
        self._record("getMasterListRaw", session_id)
        if self.on_master_list:
            self.on_master_list()
        return list(self.master)

    def get_bill_roll_calls(self, bill_id):
        self._record("getBill", bill_id)
        if bill_id not in self.bills:
            raise LegiScanAPIError("getBill", "Unknown bill id")
        return list(self.bills[bill_id])

    def get_roll_call(self, roll_call_id):
        self._record("getRollCall", roll_call_id)
        if roll_call_id not in self.roll_calls:
            raise LegiScanAPIError("getRollCall", "Unknown roll call id")
        return self.roll_calls[roll_call_id]


JANE = RosterEntry(person_id=7, full_name="Jane Q. Doe", first_name="Jane", last_name="Doe", role="Rep", party="D", district="HD-012")
JOHN = RosterEntry(person_id=8, full_name="John Roe", first_name="John", last_name="Roe", role="Rep", party="R", district="HD-040")


def roll_call(rc_id, bill_id, date, votes, passed=True):
    return RollCall(roll_call_id=rc_id, bill_id=bill_id, date=date, description=f"Roll call {rc_id}",
                    chamber="H", yea=80, nay=60, not_voting=3, absent=2, passed=passed, votes=votes)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache():
    return InMemoryCacheStore()


@pytest.fixture
def legislator():
    return Legislator(legislator_id="tx-lower-012", state="TX", full_name="Jane Doe", chamber="lower")


@pytest.fixture
def fake_client():
    """Session with bill A (hash h1) and bill B (hash h2), one roll call each."""
    return FakeLegiScanClient(
        sessions=[Session(session_id=2000, state="TX", year_start=2025, year_end=2026, session_name="89th Legislature")],
        people=[JANE, JOHN],
        master=[
            BillHashEntry(bill_id=1, number="HB 1", title="Bill A", change_hash="h1", last_action_date="2025-03-01"),
            BillHashEntry(bill_id=2, number="HB 2", title="Bill B", change_hash="h2", last_action_date="2025-02-01"),
        ],
        bills={
            1: [RollCallRef(roll_call_id=101, date="2025-03-01", description="Third reading")],
            2: [RollCallRef(roll_call_id=201, date="2025-02-01", description="Second reading")],
        },
        roll_calls={
            101: roll_call(101, 1, "2025-03-01", {7: "Yea", 8: "Nay"}),
            201: roll_call(201, 2, "2025-02-01", {8: "Yea"}),
        },
    )


@pytest.fixture
def synchronizer(fake_client, cache, clock):
    return VoteSynchronizer(fake_client, cache, config=SyncConfig(api_key="test_key"), clock=clock)
