"""In-memory TTL cache store for serialized package metadata.

Implements the cache contract consumed by the metadata service: get() raises
CacheNotFound or CacheExpired for misses, set() stores bytes with a TTL.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from constants import Constants


class CacheNotFound(KeyError):
    """Key was never stored or has been evicted."""


class CacheExpired(KeyError):
    """Key was stored but its TTL elapsed."""


@dataclass
class CacheEntry:
    """A single cache entry with TTL."""

    key: str
    value: bytes
    expires_at: float
    created_at: float = field(default_factory=time.time)

    def is_expired(self) -> bool:
        """Check if this entry has expired."""
        return time.time() > self.expires_at


class MemoryCache:
    """Thread-safe TTL cache keyed by string.

    Bounded by entry count; when full, the oldest tenth of the entries is
    evicted.
    """

    def __init__(self, max_entries: int = Constants.CACHE_MAX_ENTRIES, cleanup_interval: int = 60):
        """Initialize the cache.

        Args:
            max_entries: Upper bound on live entries.
            cleanup_interval: Seconds between sweeps of expired entries.
        """
        self._cache: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._max_entries = max_entries
        self._cleanup_interval = cleanup_interval
        self._last_cleanup = time.time()

    def get(self, key: str) -> bytes:
        """Get a cached value.

        Raises:
            CacheNotFound: key is unknown.
            CacheExpired: key is known but stale; the entry is dropped.
        """
        with self._lock:
            self._maybe_cleanup()
            entry = self._cache.get(key)
            if entry is None:
                raise CacheNotFound(key)
            if entry.is_expired():
                del self._cache[key]
                raise CacheExpired(key)
            return entry.value

    def set(self, key: str, value: bytes, ttl: float) -> None:
        """Store value under key for ttl seconds."""
        with self._lock:
            self._maybe_cleanup()
            self._cache[key] = CacheEntry(key=key, value=value, expires_at=time.time() + ttl)
            if len(self._cache) > self._max_entries:
                self._evict_oldest(max(1, self._max_entries // 10))

    def delete(self, key: str) -> None:
        """Drop key if present."""
        with self._lock:
            self._cache.pop(key, None)

    def clear(self) -> None:
        """Clear all cached entries."""
        with self._lock:
            self._cache.clear()

    def stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        with self._lock:
            expired_count = sum(1 for e in self._cache.values() if e.is_expired())
            return {
                "total_entries": len(self._cache),
                "expired_entries": expired_count,
                "active_entries": len(self._cache) - expired_count,
                "max_entries": self._max_entries,
            }

    def ttl(self, key: str) -> Optional[float]:
        """Remaining lifetime of key in seconds, or None when absent."""
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None
            return entry.expires_at - time.time()

    def _maybe_cleanup(self) -> None:
        now = time.time()
        if now - self._last_cleanup > self._cleanup_interval:
            for key in [k for k, v in self._cache.items() if v.is_expired()]:
                del self._cache[key]
            self._last_cleanup = now

    def _evict_oldest(self, count: int) -> None:
        sorted_keys = sorted(self._cache, key=lambda k: self._cache[k].created_at)
        for key in sorted_keys[:count]:
            del self._cache[key]
