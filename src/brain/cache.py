# src/brain/cache.py
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Dict, Generic, MutableMapping, Optional, TypeVar

K = TypeVar("K")
V = TypeVar("V")


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    ts: float
    value: V


class EvictionPolicy(Generic[K, V]):
    """Called after every put; may drop entries from the backing store."""

    def on_put(self, store: MutableMapping[K, CacheEntry[V]]) -> None:
        raise NotImplementedError


class NoEviction(EvictionPolicy):
    def on_put(self, store) -> None:
        return None


class MaxEntriesEviction(EvictionPolicy):
    """Keep at most `max_entries`, dropping the oldest timestamps first."""

    def __init__(self, max_entries: int):
        if int(max_entries) < 1:
            raise ValueError("max_entries must be >= 1")
        self.max_entries = int(max_entries)

    def on_put(self, store) -> None:
        overflow = len(store) - self.max_entries
        if overflow <= 0:
            return
        oldest = sorted(store.items(), key=lambda kv: kv[1].ts)[:overflow]
        for k, _ in oldest:
            store.pop(k, None)


class TTLCache(Generic[K, V]):
    """
    Timestamp TTL cache. Expired entries are dropped lazily on read.

    The backing mapping can be injected so a cache can live inside another
    object (e.g. Session.location_cache) and travel with it.
    """

    def __init__(
        self,
        ttl_seconds: float,
        *,
        eviction: Optional[EvictionPolicy] = None,
        clock: Callable[[], float] = time.time,
        store: Optional[MutableMapping[K, CacheEntry[V]]] = None,
    ):
        self.ttl_seconds = float(ttl_seconds)
        self._eviction = eviction or NoEviction()
        self._clock = clock
        self._store: MutableMapping[K, CacheEntry[V]] = store if store is not None else {}

    def get(self, key: K) -> Optional[V]:
        entry = self._store.get(key)
        if entry is None:
            return None
        if (self._clock() - entry.ts) >= self.ttl_seconds:
            self._store.pop(key, None)
            return None
        return entry.value

    def put(self, key: K, value: V) -> None:
        self._store[key] = CacheEntry(ts=self._clock(), value=value)
        self._eviction.on_put(self._store)

    def invalidate(self, key: K) -> None:
        self._store.pop(key, None)

    def clear(self) -> None:
        self._store.clear()

    def __contains__(self, key: object) -> bool:
        return self.get(key) is not None  # type: ignore[arg-type]

    def __len__(self) -> int:
        return len(self._store)

    def snapshot(self) -> Dict[K, V]:
        return {k: e.value for k, e in self._store.items()}
