"""
Cache-store interface consumed by the resolvers and the synchronizer.

The store is a plain key/value service: it keeps a payload and the time it
was fetched. TTLs are evaluated by the caller with ``is_fresh``, never by the
store itself.
"""
import json
import os
import re
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Union


@dataclass
class CacheEntry:
    payload: Any
    fetched_at: datetime


class CacheStore(Protocol):
    def get(self, key: str) -> Optional[CacheEntry]: ...

    def set(self, key: str, payload: Any, fetched_at: datetime) -> None: ...


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_fresh(entry: Optional[CacheEntry], ttl: timedelta, now: datetime) -> bool:
    if entry is None:
        return False
    return now - entry.fetched_at < ttl


class InMemoryCacheStore:
    """Thread-safe dict-backed store. Payloads are kept by reference."""

    def __init__(self):
        self._data: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[CacheEntry]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, payload: Any, fetched_at: datetime) -> None:
        with self._lock:
            self._data[key] = CacheEntry(payload=payload, fetched_at=fetched_at)

    def keys(self):
        with self._lock:
            return list(self._data)


class JsonFileCacheStore:
    """One JSON file per key under ``root``; writes go through a temp file and ``os.replace``."""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        safe = re.sub(r"[^A-Za-z0-9._-]+", "_", key)
        return self.root / f"{safe}.json"

    def get(self, key: str) -> Optional[CacheEntry]:
        path = self._path(key)
        if not path.exists():
            return None
        doc = json.loads(path.read_text(encoding="utf-8"))
        return CacheEntry(payload=doc.get("data"),
                          fetched_at=datetime.fromisoformat(doc["fetched_at"]))

    def set(self, key: str, payload: Any, fetched_at: datetime) -> None:
        path = self._path(key)
        tmp_path = path.with_suffix(f"{path.suffix}.tmp")
        doc = {"key": key, "data": payload, "fetched_at": fetched_at.isoformat()}
        tmp_path.write_text(json.dumps(doc, ensure_ascii=False), encoding="utf-8")
        os.replace(tmp_path, path)
