import os
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from dotenv import load_dotenv

DEFAULT_BASE_URL = "https://api.legiscan.com/"


def _env_api_key() -> Optional[str]:
    return os.getenv("LEGISCAN_API_KEY") or os.getenv("LEGISCAN_API") or os.getenv("LEGISCAN_KEY")


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError as e:
        raise ValueError(f"{name} must be a number. Got {value!r}.") from e


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer. Got {value!r}.") from e


@dataclass
class SyncConfig:
    """Tuning knobs for the LegiScan client and the vote synchronizer."""
    api_key: Optional[str] = None
    base_url: str = DEFAULT_BASE_URL
    timeout: float = 15.0              # per-call timeout, seconds
    min_interval: float = 1.1          # seconds between calls (LegiScan allows ~1 rps)
    max_bills_per_sync: int = 20       # most recently acted-upon changed bills processed per sync
    session_ttl: timedelta = timedelta(days=7)
    roster_ttl: timedelta = timedelta(days=7)
    votes_ttl: timedelta = timedelta(hours=24)

    def __post_init__(self):
        if self.max_bills_per_sync < 0:
            raise ValueError(f"max_bills_per_sync must be >= 0. Got {self.max_bills_per_sync}.")
        if self.min_interval < 0:
            raise ValueError(f"min_interval must be >= 0. Got {self.min_interval}.")

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "SyncConfig":
        """Build a config from the environment, loading ``.env`` first (existing variables win)."""
        load_dotenv(env_file)
        return cls(
            api_key=_env_api_key(),
            base_url=os.getenv("LEGISCAN_BASE_URL") or DEFAULT_BASE_URL,
            timeout=_env_float("LEGISCAN_TIMEOUT", 15.0),
            min_interval=_env_float("LEGISCAN_MIN_INTERVAL", 1.1),
            max_bills_per_sync=_env_int("LEGISCAN_MAX_BILLS_PER_SYNC", 20),
            session_ttl=timedelta(hours=_env_float("LEGISCAN_SESSION_TTL_HOURS", 168)),
            roster_ttl=timedelta(hours=_env_float("LEGISCAN_ROSTER_TTL_HOURS", 168)),
            votes_ttl=timedelta(hours=_env_float("LEGISCAN_VOTES_TTL_HOURS", 24)),
        )
