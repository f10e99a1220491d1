"""
In-process result cache with per-data-kind freshness windows.

Sits in front of the fallback chain: a hit inside its TTL costs no upstream
call at all. Only successful results are stored; errors from the compute
function pass straight through. Entries are replaced whole, never patched.
"""
from __future__ import annotations

import logging
import math
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, Mapping, Optional, TypeVar

from .providers.base import FINANCIALS, NEWS, OVERVIEW, PRICE, DataKind, ProviderResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TTLS_S: Dict[str, float] = {
    PRICE: 120.0,
    NEWS: 600.0,
    FINANCIALS: 86_400.0,
    OVERVIEW: 21_600.0,
}


@dataclass(frozen=True)
class CacheEntry:
    value: Any
    provider: Optional[str]
    created_at: float
    ttl_s: float = math.inf

    def expired(self, now: float) -> bool:
        return now - self.created_at >= self.ttl_s


class CacheStore:
    """Thread-safe key -> CacheEntry mapping."""

    def __init__(self) -> None:
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[CacheEntry]:
        with self._lock:
            return self._entries.get(key)

    def put(self, key: str, entry: CacheEntry) -> None:
        with self._lock:
            self._entries[key] = entry

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def delete_prefix(self, prefix: str) -> int:
        with self._lock:
            doomed = [k for k in self._entries if k.startswith(prefix)]
            for k in doomed:
                del self._entries[k]
        return len(doomed)

    def purge_expired(self, now: float) -> int:
        with self._lock:
            doomed = [k for k, e in self._entries.items() if e.expired(now)]
            for k in doomed:
                del self._entries[k]
        return len(doomed)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def keys(self) -> Iterator[str]:
        with self._lock:
            return iter(list(self._entries))

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


@dataclass
class _KeyLock:
    lock: threading.Lock = field(default_factory=threading.Lock)
    users: int = 0


class ResultCache:
    """
    ``get_or_compute(key, ttl_s, compute_fn)`` with time-based expiry.

    Concurrent misses on the same key wait on a per-key lock, so one
    upstream fetch serves them all. A key's lock is dropped once no thread
    holds or waits on it, and every miss sweeps expired entries out of the
    store.
    """

    def __init__(
        self,
        store: Optional[CacheStore] = None,
        ttls: Optional[Mapping[str, float]] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._store = store if store is not None else CacheStore()
        self._ttls = dict(DEFAULT_TTLS_S)
        if ttls:
            self._ttls.update(ttls)
        self._clock = clock
        self._key_locks: Dict[str, _KeyLock] = {}
        self._key_locks_guard = threading.Lock()

    @property
    def store(self) -> CacheStore:
        return self._store

    @property
    def pending_keys(self) -> int:
        """Keys with a fetch in progress or queued."""
        with self._key_locks_guard:
            return len(self._key_locks)

    def ttl_for(self, kind: DataKind) -> float:
        return self._ttls[kind.capability]

    def _fresh(self, key: str, ttl_s: float) -> Optional[CacheEntry]:
        entry = self._store.get(key)
        if entry is None:
            return None
        if self._clock() - entry.created_at >= ttl_s:
            return None
        return entry

    @contextmanager
    def _locked(self, key: str) -> Iterator[None]:
        with self._key_locks_guard:
            slot = self._key_locks.get(key)
            if slot is None:
                slot = self._key_locks[key] = _KeyLock()
            slot.users += 1
        try:
            with slot.lock:
                yield
        finally:
            with self._key_locks_guard:
                slot.users -= 1
                if slot.users == 0:
                    del self._key_locks[key]

    def get_or_compute(self, key: str, ttl_s: float, compute_fn: Callable[[], T]) -> T:
        entry = self._fresh(key, ttl_s)
        if entry is not None:
            logger.debug("cache hit %s (provider=%s)", key, entry.provider)
            return entry.value

        with self._locked(key):
            # Another thread may have filled it while we waited.
            entry = self._fresh(key, ttl_s)
            if entry is not None:
                logger.debug("cache hit %s after wait", key)
                return entry.value

            swept = self._store.purge_expired(self._clock())
            logger.debug("cache miss %s (swept %d expired)", key, swept)
            value = compute_fn()
            provider = value.provider if isinstance(value, ProviderResult) else None
            self._store.put(
                key, CacheEntry(value=value, provider=provider, created_at=self._clock(), ttl_s=ttl_s)
            )
            return value

    def invalidate(self, prefix: str = "") -> int:
        """Drop every key starting with ``prefix`` (all keys when empty)."""
        if not prefix:
            n = len(self._store)
            self._store.clear()
            return n
        return self._store.delete_prefix(prefix)
