"""Pytest configuration and fixtures for masterlock tests"""
import logging

import pytest

from masterlock.core.locks.backends import InMemoryKeyStore, RedisKeyStore


class FakeClock:
    """Manually advanced stand-in for time.monotonic"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def memory_store():
    return InMemoryKeyStore()


@pytest.fixture
def redis_client():
    """In-process Redis server with Lua scripting support"""
    fakeredis = pytest.importorskip("fakeredis")
    pytest.importorskip("lupa", reason="fakeredis needs lupa for EVAL/EVALSHA")
    client = fakeredis.FakeRedis()
    client.flushall()
    yield client
    client.flushall()


@pytest.fixture(params=["memory", "redis"])
def store(request):
    """Every key store backend that must satisfy the same protocol"""
    if request.param == "memory":
        return InMemoryKeyStore()
    return RedisKeyStore(request.getfixturevalue("redis_client"))


@pytest.fixture(autouse=True)
def _restore_masterlock_logger():
    """setup_logging() detaches the package logger from root; undo that between tests"""
    logger = logging.getLogger("masterlock")
    yield
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
