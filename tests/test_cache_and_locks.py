"""Tests for the TTL cache store and per-key locks."""

import threading
import time
from unittest.mock import patch

import pytest

from common.locks import KeyedLocks
from storage.cache import CacheExpired, CacheNotFound, MemoryCache


class TestMemoryCache:
    """Tests for MemoryCache."""

    def test_set_get(self):
        cache = MemoryCache()
        cache.set("k", b"v", 60)
        assert cache.get("k") == b"v"

    def test_missing_key(self):
        with pytest.raises(CacheNotFound):
            MemoryCache().get("nope")

    def test_expired_key(self):
        cache = MemoryCache()
        with patch("storage.cache.time.time", return_value=1000.0):
            cache.set("k", b"v", 10)
        with patch("storage.cache.time.time", return_value=1011.0):
            with pytest.raises(CacheExpired):
                cache.get("k")
        with pytest.raises(CacheNotFound):
            cache.get("k")

    def test_eviction_keeps_bound(self):
        cache = MemoryCache(max_entries=10)
        for i in range(25):
            cache.set(f"k{i}", b"v", 60)
        assert cache.stats()["total_entries"] <= 10
        assert cache.get("k24") == b"v"

    def test_delete_and_clear(self):
        cache = MemoryCache()
        cache.set("a", b"1", 60)
        cache.set("b", b"2", 60)
        cache.delete("a")
        with pytest.raises(CacheNotFound):
            cache.get("a")
        cache.clear()
        assert cache.stats()["total_entries"] == 0


class TestKeyedLocks:
    """Tests for KeyedLocks."""

    def test_same_key_same_lock(self):
        locks = KeyedLocks()
        assert locks.get("a") is locks.get("a")
        assert locks.get("a") is not locks.get("b")
        assert "a" in locks and len(locks) == 2

    def test_concurrent_creation_yields_one_lock(self):
        locks = KeyedLocks()
        seen = []
        barrier = threading.Barrier(8)

        def grab():
            barrier.wait()
            seen.append(locks.get("k"))

        threads = [threading.Thread(target=grab) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len({id(lock) for lock in seen}) == 1

    def test_same_key_is_mutually_exclusive(self):
        locks = KeyedLocks()
        active = []
        overlaps = []

        def work():
            with locks.lock("k"):
                active.append(1)
                if len(active) > 1:
                    overlaps.append(True)
                time.sleep(0.01)
                active.pop()

        threads = [threading.Thread(target=work) for _ in range(6)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert overlaps == []

    def test_different_keys_do_not_block(self):
        locks = KeyedLocks()
        with locks.lock("a"):
            acquired = locks.get("b").acquire(timeout=0.5)
            assert acquired
            locks.get("b").release()

    def test_namespaces_are_independent(self):
        fetch, install = KeyedLocks("fetch"), KeyedLocks("install")
        with fetch.lock("pkg@1.0.0"):
            assert install.get("pkg@1.0.0").acquire(timeout=0.5)
            install.get("pkg@1.0.0").release()
