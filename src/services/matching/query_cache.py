"""
TTL cache for retrieval results, keyed by normalized query string.

Entries are immutable and replaced atomically under a per-shard lock, so a
reader sees either the old entry or the new one. Locks guard dictionary
access only. Expired entries are dropped on read and by sweep().
"""

import logging
import threading
import time
import zlib
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from services.matching.config import DEFAULT_CACHE_TTL_SECONDS
from services.matching.models import RecordView

logger = logging.getLogger(__name__)

DEFAULT_SHARDS = 16
DEFAULT_SWEEP_INTERVAL_SECONDS = 60.0


def normalize_key(query: str) -> str:
    return query.lower().strip()


@dataclass(frozen=True)
class CacheEntry:
    key: str
    records: Tuple[RecordView, ...]
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class _Shard:
    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.entries: Dict[str, CacheEntry] = {}


class QueryCache:
    def __init__(
        self,
        ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        shards: int = DEFAULT_SHARDS,
        clock: Callable[[], float] = time.monotonic,
        sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._shards = [_Shard() for _ in range(max(1, shards))]
        self._sweep_interval = sweep_interval_seconds
        self._last_sweep = clock()
        self._sweep_lock = threading.Lock()

    def get(self, key: str) -> Optional[List[RecordView]]:
        normalized = normalize_key(key)
        shard = self._shard_for(normalized)
        now = self._clock()
        with shard.lock:
            entry = shard.entries.get(normalized)
            if entry is None:
                return None
            if entry.is_expired(now):
                del shard.entries[normalized]
                return None
        return list(entry.records)

    def put(
        self,
        key: str,
        records: Iterable[RecordView],
        ttl_seconds: Optional[float] = None,
    ) -> None:
        normalized = normalize_key(key)
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        entry = CacheEntry(
            key=normalized,
            records=tuple(records),
            expires_at=self._clock() + ttl,
        )
        shard = self._shard_for(normalized)
        with shard.lock:
            shard.entries[normalized] = entry

    def sweep(self) -> int:
        removed = 0
        for shard in self._shards:
            removed += self._sweep_shard(shard)
        if removed:
            logger.debug(f"Query cache sweep removed {removed} expired entries")
        return removed

    def maybe_sweep(self) -> int:
        now = self._clock()
        if now - self._last_sweep < self._sweep_interval:
            return 0
        if not self._sweep_lock.acquire(blocking=False):
            return 0
        try:
            self._last_sweep = now
            return self.sweep()
        finally:
            self._sweep_lock.release()

    def clear(self) -> None:
        for shard in self._shards:
            with shard.lock:
                shard.entries.clear()

    def __len__(self) -> int:
        return sum(len(shard.entries) for shard in self._shards)

    def _sweep_shard(self, shard: _Shard) -> int:
        with shard.lock:
            now = self._clock()
            expired = [key for key, entry in shard.entries.items() if entry.is_expired(now)]
            for key in expired:
                del shard.entries[key]
        return len(expired)

    def _shard_for(self, key: str) -> _Shard:
        index = zlib.crc32(key.encode("utf-8")) % len(self._shards)
        return self._shards[index]
