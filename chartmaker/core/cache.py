import asyncio
import hashlib
import json
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from loguru import logger

from chartmaker.core.constants import CACHE_MAX_ENTRIES, CACHE_SWEEP_INTERVAL_SECONDS, CACHE_TTL_SECONDS

T = TypeVar("T")


def canonical_json(body: Any) -> str:
    """Serialize a request body so that equal content always yields equal text."""
    return json.dumps(body, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def make_fingerprint(endpoint: str, body: Any = None) -> str:
    """Cache key for a request: digest of the endpoint identity and its canonical body."""
    digest = hashlib.sha256()
    digest.update(endpoint.encode("utf-8"))
    digest.update(b"\n")
    digest.update(canonical_json(body).encode("utf-8"))
    return digest.hexdigest()


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    key: str
    payload: T
    expire_at: float
    inserted_at: float


class ResponseCache(Generic[T]):
    """
    Bounded in-process TTL cache for upstream responses.

    Entries expire ``ttl`` seconds after insertion. When the entry count
    exceeds ``max_entries`` the oldest-inserted entries are evicted first
    (FIFO, not LRU). Reads never refresh an entry's position.

    The map is guarded by a single lock shared by readers, writers and the
    periodic sweeper. Nothing here performs I/O.
    """

    def __init__(
        self,
        name: str = "cache",
        ttl: float = CACHE_TTL_SECONDS,
        max_entries: int = CACHE_MAX_ENTRIES,
        sweep_interval: float = CACHE_SWEEP_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self.name = name
        self.ttl = ttl
        self.max_entries = max_entries
        self.sweep_interval = sweep_interval
        self._clock = clock
        self._lock = threading.Lock()
        # dict preserves insertion order; overwrites are re-inserted at the end,
        # so iteration order is exactly ascending inserted_at with ties broken
        # by arrival order.
        self._entries: dict[str, CacheEntry[T]] = {}
        self._sweeper: asyncio.Task | None = None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: str) -> T | None:
        """Return the payload for ``key`` if present and unexpired, else None."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or now >= entry.expire_at:
                return None
            return entry.payload

    def put(self, key: str, payload: T) -> None:
        now = self._clock()
        with self._lock:
            self._entries.pop(key, None)
            self._entries[key] = CacheEntry(key=key, payload=payload, expire_at=now + self.ttl, inserted_at=now)
            self._prune_locked(now)
            self._evict_overflow_locked()

    def prune(self) -> int:
        """Drop expired entries, then enforce capacity. Returns the number of entries removed."""
        now = self._clock()
        with self._lock:
            removed = self._prune_locked(now)
            removed += self._evict_overflow_locked()
            return removed

    def discard(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def evict_overflow(self) -> int:
        with self._lock:
            return self._evict_overflow_locked()

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def keys(self) -> list[str]:
        """Keys in eviction order (oldest-inserted first)."""
        with self._lock:
            return list(self._entries)

    def _prune_locked(self, now: float) -> int:
        expired = [key for key, entry in self._entries.items() if entry.expire_at <= now]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def _evict_overflow_locked(self) -> int:
        excess = len(self._entries) - self.max_entries
        if excess <= 0:
            return 0
        victims = list(self._entries)[:excess]
        for key in victims:
            del self._entries[key]
        return excess

    # Periodic sweep

    def start(self) -> None:
        """Start the background sweeper on the running event loop."""
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.create_task(self._sweep_loop(), name=f"{self.name}-sweeper")

    async def close(self) -> None:
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        try:
            await self._sweeper
        except asyncio.CancelledError:
            pass
        self._sweeper = None

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval)
            removed = self.prune()
            if removed:
                logger.debug(f"[{self.name}] Sweep removed {removed} cache entries")
