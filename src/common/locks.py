"""Per-key mutual exclusion.

Duplicate concurrent requests for the same key serialize on one lock, so the
first holder does the real work and followers observe its result (through the
cache or the on-disk post-condition). Locks are created on demand and kept
for the lifetime of the owning instance.
"""
from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Iterator


class KeyedLocks:
    """Registry of one threading.Lock per string key."""

    def __init__(self, namespace: str = "") -> None:
        self.namespace = namespace
        self._locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def get(self, key: str) -> threading.Lock:
        """Return the lock for key, creating it if absent."""
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def lock(self, key: str) -> Iterator[None]:
        """Hold the lock for key for the duration of the block."""
        lock = self.get(key)
        with lock:
            yield

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    def __contains__(self, key: object) -> bool:
        with self._guard:
            return key in self._locks
