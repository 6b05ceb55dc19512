# tests/test_support.py
import logging
from datetime import datetime, timedelta, timezone

import pytest

from legiscan_sync import (InMemoryCacheStore, JsonFileCacheStore, Position,
                           RateGate, SyncConfig, SyncState, VoteRecord,
                           normalize_position)
from legiscan_sync.cache import is_fresh
from legiscan_sync.models import chamber_label, result_label
from legiscan_sync.utils import logger_setup


class FakeTime:
    def __init__(self):
        self.t = 100.0
        self.sleeps = []

    def clock(self):
        return self.t

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.t += seconds


# ------------- rate gate -------------

def test_rate_gate_spaces_calls():
    ft = FakeTime()
    gate = RateGate(min_interval=1.1, clock=ft.clock, sleep=ft.sleep)

    gate.acquire()
    gate.acquire()
    ft.t += 0.5
    gate.acquire()
    ft.t += 2.0
    gate.acquire()

    assert ft.sleeps == [pytest.approx(1.1), pytest.approx(0.6)]


def test_independent_gates_do_not_interfere():
    ft = FakeTime()
    a = RateGate(min_interval=1.0, clock=ft.clock, sleep=ft.sleep)
    b = RateGate(min_interval=1.0, clock=ft.clock, sleep=ft.sleep)
    a.acquire()
    b.acquire()
    assert ft.sleeps == []


def test_rate_gate_rejects_negative_interval():
    with pytest.raises(ValueError):
        RateGate(min_interval=-1)


# ------------- logging -------------

def test_logger_setup_is_idempotent_and_does_not_propagate():
    first = logger_setup(logger_name="LegiScan Test Logger", log_level=logging.DEBUG)
    handlers = list(first.handlers)
    second = logger_setup(logger_name="LegiScan Test Logger", log_level=logging.WARNING)

    assert first is second
    assert second.handlers == handlers
    assert second.level == logging.WARNING
    assert second.propagate is False


# ------------- normalization -------------

@pytest.mark.parametrize("raw, expected", [
    ("Yea", Position.YEA),
    ("Nay", Position.NAY),
    ("NV", Position.NOT_VOTING),
    ("Absent", Position.NOT_VOTING),
    ("Present", Position.PRESENT),
    ("Excused", "Excused"),
    ("", ""),
])
def test_normalize_position(raw, expected):
    assert normalize_position(raw) == expected


def test_result_and_chamber_labels():
    assert [result_label(x) for x in (True, False, None)] == ["Passed", "Failed", ""]
    assert chamber_label("upper") == "Senate"
    assert chamber_label("S") == "Senate"
    assert chamber_label("lower") == "House"
    assert chamber_label(None) == "House"


def test_sync_state_payload_is_json_shaped():
    vote = VoteRecord(roll_number="101", question="Q", date="2025-03-01", result="Passed", position="Yea",
                      bill_number="HB 1", bill_title="A", chamber="House", yea_count=1, nay_count=0,
                      not_voting_count=0, source_roll_call_id=101, source_bill_id=1)
    state = SyncState(votes=[vote], hash_index={1: "h1"}, fetched_roll_call_ids={201, 101})

    payload = state.to_dict()
    assert payload["hashIndex"] == {"1": "h1"}
    assert payload["rollCallIds"] == [101, 201]
    assert SyncState.from_dict(payload) == state
    assert SyncState.from_dict(None) == SyncState()


# ------------- cache -------------

def test_is_fresh():
    now = datetime(2025, 5, 1, tzinfo=timezone.utc)
    store = InMemoryCacheStore()
    store.set("votes:x", {"votes": []}, now - timedelta(hours=23))
    assert is_fresh(store.get("votes:x"), timedelta(hours=24), now)
    assert not is_fresh(store.get("votes:x"), timedelta(hours=12), now)
    assert not is_fresh(store.get("missing"), timedelta(hours=24), now)


def test_json_file_store(tmp_path):
    store = JsonFileCacheStore(tmp_path / "cache")
    stamp = datetime(2025, 5, 1, 12, 30, tzinfo=timezone.utc)
    store.set("roster:2000", [{"person_id": 7}], stamp)

    entry = JsonFileCacheStore(tmp_path / "cache").get("roster:2000")
    assert entry.payload == [{"person_id": 7}]
    assert entry.fetched_at == stamp
    assert store.get("roster:2001") is None
    assert not list((tmp_path / "cache").glob("*.tmp"))


# ------------- config -------------

def _isolate_env(monkeypatch, *names):
    # setenv then delenv so monkeypatch restores the unset state, even for values dotenv adds
    for name in names:
        monkeypatch.setenv(name, "placeholder")
        monkeypatch.delenv(name)


def test_config_defaults():
    config = SyncConfig()
    assert config.min_interval == 1.1
    assert config.max_bills_per_sync == 20
    assert config.votes_ttl == timedelta(hours=24)
    assert config.session_ttl == timedelta(days=7)


def test_config_from_env_file(tmp_path, monkeypatch):
    _isolate_env(monkeypatch, "LEGISCAN_API_KEY", "LEGISCAN_API", "LEGISCAN_KEY",
                 "LEGISCAN_MAX_BILLS_PER_SYNC", "LEGISCAN_VOTES_TTL_HOURS", "LEGISCAN_TIMEOUT")
    env_file = tmp_path / ".env"
    env_file.write_text("LEGISCAN_API_KEY=from_file\nLEGISCAN_MAX_BILLS_PER_SYNC=5\nLEGISCAN_VOTES_TTL_HOURS=6\n")
    monkeypatch.setenv("LEGISCAN_TIMEOUT", "20")

    config = SyncConfig.from_env(str(env_file))

    assert config.api_key == "from_file"
    assert config.max_bills_per_sync == 5
    assert config.votes_ttl == timedelta(hours=6)
    assert config.timeout == 20.0


def test_config_rejects_bad_values(tmp_path, monkeypatch):
    env_file = tmp_path / ".env"
    env_file.write_text("")
    monkeypatch.setenv("LEGISCAN_TIMEOUT", "soon")
    with pytest.raises(ValueError):
        SyncConfig.from_env(str(env_file))
    with pytest.raises(ValueError):
        SyncConfig(max_bills_per_sync=-1)
