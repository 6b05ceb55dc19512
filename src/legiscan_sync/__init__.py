from .cache import CacheEntry, InMemoryCacheStore, JsonFileCacheStore
from .changes import ChangeDetector
from .config import SyncConfig
from .exceptions import (LegiScanAPIError, LegiScanError,
                         LegiScanNotConfigured, LegiScanPayloadError)
from .legiscan_client import LegiScanClient  # re-export public class
from .models import (BillHashEntry, ChangeSet, Legislator, Position, RollCall,
                     RollCallRef, RosterEntry, Session, SyncState, VoteRecord,
                     normalize_position)
from .rate_gate import RateGate
from .roster import RosterResolver
from .sessions import SessionResolver
from .sync import VoteSynchronizer

__all__ = [
    "LegiScanClient",
    "VoteSynchronizer",
    "SessionResolver",
    "RosterResolver",
    "ChangeDetector",
    "RateGate",
    "SyncConfig",
    "CacheEntry",
    "InMemoryCacheStore",
    "JsonFileCacheStore",
    "LegiScanError",
    "LegiScanAPIError",
    "LegiScanNotConfigured",
    "LegiScanPayloadError",
    "BillHashEntry",
    "ChangeSet",
    "Legislator",
    "Position",
    "RollCall",
    "RollCallRef",
    "RosterEntry",
    "Session",
    "SyncState",
    "VoteRecord",
    "normalize_position",
]
