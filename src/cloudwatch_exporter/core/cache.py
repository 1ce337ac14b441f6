"""Named, bounded, TTL-expiring caches with hit/miss statistics.

Each named cache holds at most ``max_entries`` items and evicts the least
recently used entry when full. Entries older than ``ttl_seconds`` are treated
as absent and dropped on access.
"""

import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

DEFAULT_MAX_ENTRIES = 100000
DEFAULT_TTL_SECONDS = 2000

DIMENSIONS_CACHE = "dimensions"
METRICS_CACHE = "metrics"
TAGS_CACHE = "tags"

# name -> (max_entries, ttl_seconds)
ENGINE_CACHES: dict[str, tuple[int, float]] = {
    DIMENSIONS_CACHE: (500, 4 * 3600),
    METRICS_CACHE: (1000000, 2 * 60),
    TAGS_CACHE: (100000, 6 * 3600),
}


@dataclass(frozen=True)
class CacheStats:
    """Point-in-time statistics for one named cache.

    Attributes:
        size: Number of entries currently held (expired ones included until
            they are next accessed).
        hit_count: Lookups answered from the cache.
        miss_count: Lookups that found nothing fresh.
        hit_ratio: hit_count / (hit_count + miss_count), 0.0 before any lookup.
    """

    size: int
    hit_count: int
    miss_count: int
    hit_ratio: float


class TTLCache:
    """Thread-safe LRU cache whose entries expire after a fixed age.

    Args:
        max_entries: Maximum number of entries to hold.
        ttl_seconds: Maximum entry age in seconds.
        clock: Wall-clock source, defaults to time.time.
    """

    def __init__(
        self,
        max_entries: int,
        ttl_seconds: float,
        clock: Callable[[], float] | None = None,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self._clock = clock or time.time
        self._entries: OrderedDict[str, tuple[Any, float]] = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Any | None:
        """Return the fresh value for key, or None."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                value, inserted_at = entry
                if self._clock() - inserted_at < self.ttl_seconds:
                    self._entries.move_to_end(key)
                    self._hits += 1
                    return value
                del self._entries[key]
            self._misses += 1
            return None

    def put(self, key: str, value: Any) -> None:
        """Store value under key. None values are not cached."""
        if value is None:
            return
        with self._lock:
            self._entries[key] = (value, self._clock())
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def stats(self) -> CacheStats:
        """Return current size and lookup statistics."""
        with self._lock:
            lookups = self._hits + self._misses
            ratio = self._hits / lookups if lookups else 0.0
            return CacheStats(
                size=len(self._entries),
                hit_count=self._hits,
                miss_count=self._misses,
                hit_ratio=ratio,
            )


class CacheRegistry:
    """Registry of named caches shared by the scrape components.

    Construct one per exporter and pass it to the components that cache;
    tests construct their own for isolation.

    Args:
        clock: Wall-clock source handed to every cache, defaults to time.time.
    """

    def __init__(self, clock: Callable[[], float] | None = None) -> None:
        self._clock = clock
        self._caches: dict[str, TTLCache] = {}
        self._lock = threading.Lock()

    def configure(self, name: str, max_entries: int, ttl_seconds: float) -> TTLCache:
        """Create (or replace) the named cache with the given bounds."""
        cache = TTLCache(max_entries, ttl_seconds, clock=self._clock)
        with self._lock:
            self._caches[name] = cache
        return cache

    def cache(self, name: str) -> TTLCache:
        """Return the named cache, creating it with defaults on first access."""
        existing = self._caches.get(name)
        if existing is not None:
            return existing
        with self._lock:
            if name not in self._caches:
                self._caches[name] = TTLCache(
                    DEFAULT_MAX_ENTRIES, DEFAULT_TTL_SECONDS, clock=self._clock
                )
            return self._caches[name]

    def get(self, name: str, key: str) -> Any | None:
        """Return the fresh value for key in the named cache, or None."""
        return self.cache(name).get(key)

    def put(self, name: str, key: str, value: Any) -> None:
        """Store value under key in the named cache."""
        self.cache(name).put(key, value)

    def stats(self, name: str) -> CacheStats:
        """Return statistics for the named cache."""
        return self.cache(name).stats()

    def names(self) -> list[str]:
        """Return configured cache names in creation order."""
        with self._lock:
            return list(self._caches)


def configure_engine_caches(registry: CacheRegistry) -> CacheRegistry:
    """Configure the dimensions, metrics and tags caches with their own TTLs."""
    for name, (max_entries, ttl_seconds) in ENGINE_CACHES.items():
        registry.configure(name, max_entries, ttl_seconds)
    return registry


def cache_key(*fields: str) -> str:
    """Join key fields with '#'."""
    return "#".join(fields)
