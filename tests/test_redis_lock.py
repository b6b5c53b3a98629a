"""Tests for the acquire/extend/release lock protocol.

Each test runs against both the in-memory reference store and a fakeredis
server executing the real Lua scripts.
"""

from __future__ import annotations

import threading
import time

import pytest

from masterlock.core.exceptions import ConfigurationError
from masterlock.core.locks.redis_lock import RedisLock, format_lock_key


@pytest.fixture
def lock1(store):
    return RedisLock(store, "key", "owner1", ttl=0.1)


@pytest.fixture
def lock2(store):
    return RedisLock(store, "key", "owner2", ttl=0.1)


class TestAcquire:
    def test_returns_true_when_lock_can_be_acquired(self, lock1):
        assert lock1.acquire(timeout=0) is True

    def test_returns_false_when_lock_is_held(self, lock1, lock2):
        assert lock1.acquire(timeout=0) is True
        assert lock2.acquire(timeout=0) is False

    def test_same_owner_cannot_acquire_twice(self, store, lock1):
        assert lock1.acquire(timeout=0) is True
        assert lock1.acquire(timeout=0) is False
        twin = RedisLock(store, "key", "owner1", ttl=0.1)
        assert twin.acquire(timeout=0) is False

    def test_retries_until_previous_lock_expires(self, lock1, lock2):
        assert lock1.acquire(timeout=0) is True
        assert lock2.acquire(timeout=1) is True

    def test_retries_until_holder_releases(self, store):
        holder = RedisLock(store, "key", "holder", ttl=10)
        waiter = RedisLock(store, "key", "waiter", ttl=10, sleep_interval=0.02)
        assert holder.acquire(timeout=0) is True

        releaser = threading.Timer(0.2, holder.release)
        releaser.start()
        try:
            start = time.monotonic()
            assert waiter.acquire(timeout=2) is True
            assert time.monotonic() - start < 1.5
        finally:
            releaser.join()

    def test_zero_timeout_makes_a_single_attempt(self, store, lock1):
        calls = {"count": 0}
        original = store.create_if_absent

        def _counting(*args):
            calls["count"] += 1
            return original(*args)

        store.create_if_absent = _counting
        slow_poller = RedisLock(store, "key", "owner2", ttl=0.1, sleep_interval=0.5)

        assert lock1.acquire(timeout=0) is True
        start = time.monotonic()
        assert slow_poller.acquire(timeout=0) is False
        assert time.monotonic() - start < 0.25
        assert calls["count"] == 2

    def test_times_out_on_contended_key(self, store):
        holder = RedisLock(store, "key", "holder", ttl=10)
        waiter = RedisLock(store, "key", "waiter", ttl=10, sleep_interval=0.02)
        assert holder.acquire(timeout=0) is True

        start = time.monotonic()
        assert waiter.acquire(timeout=0.15) is False
        elapsed = time.monotonic() - start
        assert 0.15 <= elapsed < 1.0

    def test_poll_sleep_never_overshoots_the_timeout(self, store):
        holder = RedisLock(store, "key", "holder", ttl=10)
        waiter = RedisLock(store, "key", "waiter", ttl=10, sleep_interval=1.0)
        assert holder.acquire(timeout=0) is True

        start = time.monotonic()
        assert waiter.acquire(timeout=0.05) is False
        elapsed = time.monotonic() - start
        assert 0.05 <= elapsed < 0.5

    def test_negative_timeout_is_rejected(self, lock1):
        with pytest.raises(ConfigurationError):
            lock1.acquire(timeout=-1)

    def test_only_one_of_many_threads_acquires(self, store):
        winners = []
        barrier = threading.Barrier(10)

        def _contend(index: int) -> None:
            lock = RedisLock(store, "contended", f"owner-{index}", ttl=10)
            barrier.wait()
            if lock.acquire(timeout=0):
                winners.append(index)

        threads = [threading.Thread(target=_contend, args=(i,)) for i in range(10)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(winners) == 1


class TestExtend:
    def test_returns_true_when_held_by_owner(self, lock1):
        lock1.acquire(timeout=0)
        assert lock1.extend() is True

    def test_returns_false_when_held_by_another_owner(self, lock1, lock2):
        lock2.acquire(timeout=0)
        assert lock1.extend() is False

    def test_returns_false_when_not_held(self, lock1):
        assert lock1.extend() is False

    def test_resets_the_expiration_time(self, lock1):
        lock1.acquire(timeout=0)
        for _ in range(3):
            time.sleep(0.05)
            assert lock1.extend() is True
        time.sleep(0.2)
        assert lock1.extend() is False


class TestRelease:
    def test_returns_true_when_held_by_owner(self, lock1):
        lock1.acquire(timeout=0)
        assert lock1.release() is True

    def test_returns_false_when_held_by_another_owner(self, lock1, lock2):
        lock2.acquire(timeout=0)
        assert lock1.release() is False

    def test_returns_false_when_not_held(self, lock1):
        assert lock1.release() is False

    def test_changes_the_lock_to_be_unowned(self, lock1, lock2):
        lock1.acquire(timeout=0)
        assert lock1.release() is True
        assert lock1.release() is False
        assert lock2.acquire(timeout=0) is True
        assert lock1.release() is False


def test_handover_scenario(store):
    a = RedisLock(store, "k", "A", ttl=0.1)
    b = RedisLock(store, "k", "B", ttl=0.1)

    assert a.acquire(0) is True
    assert b.acquire(0) is False
    assert a.extend() is True
    assert a.release() is True
    assert b.acquire(0) is True
    assert a.extend() is False


class TestConstruction:
    @pytest.mark.parametrize("ttl", [0, -1, float("inf"), float("nan"), 0.0001])
    def test_rejects_invalid_ttl(self, memory_store, ttl):
        with pytest.raises(ConfigurationError):
            RedisLock(memory_store, "key", "owner", ttl=ttl)

    def test_ttl_ms_truncates_to_integer_milliseconds(self, memory_store):
        assert RedisLock(memory_store, "key", "owner", ttl=1.5).ttl_ms == 1500
        assert RedisLock(memory_store, "key", "owner", ttl=0.1).ttl_ms == 100

    def test_redis_key_uses_prefix(self, memory_store):
        lock = RedisLock(memory_store, "jobs", "owner", ttl=1, key_prefix="app")
        assert lock.redis_key == "app:jobs"

    def test_redis_key_uses_hash_tag_in_cluster_mode(self, memory_store):
        lock = RedisLock(memory_store, "jobs", "owner", ttl=1, cluster=True)
        assert lock.redis_key == "{masterlock}:jobs"


def test_format_lock_key_defaults():
    assert format_lock_key("a") == "masterlock:a"
    assert format_lock_key("a", "p", cluster=True) == "{p}:a"
