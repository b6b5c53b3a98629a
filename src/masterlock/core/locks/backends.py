"""Key store backend implementations.

Design principles:
- Ownership is defined by the key store alone; nothing on the client side is
  treated as lock truth.
- Every operation that depends on the current owner runs as a single atomic
  step inside the store, never as a read followed by a write.
- I/O failures are raised as StoreUnavailableError and never reported as
  "not owner".
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Protocol

import redis
from redis.exceptions import RedisError, ResponseError

from masterlock.core.config import MasterLockConfig
from masterlock.core.constants import BACKEND_MEMORY, BACKEND_REDIS
from masterlock.core.exceptions import StoreUnavailableError, UnconfiguredError
from masterlock.core.locks.scripts import EXTEND_SCRIPT, RELEASE_SCRIPT, LuaScript


class KeyStore(Protocol):
    """Atomic primitives the lock protocol needs from a shared key store."""

    name: str

    def create_if_absent(self, key: str, value: str, ttl_ms: int) -> bool:
        """Set key to value with a millisecond expiry only if key is absent."""

    def conditional_delete(self, key: str, expected_value: str) -> int:
        """Delete key iff its value equals expected_value. Returns 1 or 0."""

    def conditional_expire(self, key: str, expected_value: str, ttl_ms: int) -> int:
        """Reset key's expiry iff its value equals expected_value. Returns 1 or 0."""


class RedisKeyStore:
    """Redis backend using SET NX PX and server-side Lua scripts."""

    name = BACKEND_REDIS

    def __init__(self, client: redis.Redis, *, logger: logging.Logger | None = None):
        self.client = client
        self.logger = logger or logging.getLogger(__name__)

    @classmethod
    def from_url(cls, url: str, *, logger: logging.Logger | None = None, **kwargs: Any) -> RedisKeyStore:
        """Build a store from a redis:// URL. Extra kwargs go to redis-py."""
        return cls(redis.Redis.from_url(url, **kwargs), logger=logger)

    def create_if_absent(self, key: str, value: str, ttl_ms: int) -> bool:
        try:
            return bool(self.client.set(key, value, nx=True, px=ttl_ms))
        except RedisError as e:
            raise StoreUnavailableError(
                "Key store request failed", operation="acquire", key=key, details=str(e), original_error=e
            ) from e

    def conditional_delete(self, key: str, expected_value: str) -> int:
        return self._run_script(RELEASE_SCRIPT, key, expected_value)

    def conditional_expire(self, key: str, expected_value: str, ttl_ms: int) -> int:
        return self._run_script(EXTEND_SCRIPT, key, expected_value, ttl_ms)

    def _run_script(self, script: LuaScript, key: str, *args: Any) -> int:
        try:
            try:
                result = self.client.evalsha(script.sha, 1, key, *args)
            except ResponseError as e:
                # NOSCRIPT after a restart or SCRIPT FLUSH, or EVALSHA disabled by a proxy.
                self.logger.debug("EVALSHA for %s script failed (%s); sending script source", script.name, e)
                result = self.client.eval(script.source, 1, key, *args)
        except RedisError as e:
            raise StoreUnavailableError(
                "Key store request failed", operation=script.name, key=key, details=str(e), original_error=e
            ) from e
        return int(result or 0)


class InMemoryKeyStore:
    """
    In-process reference implementation.

    Used for:
    - Tests
    - Local experiments
    - Single-process deployments that still want the renewal semantics

    Provides no coordination across processes.
    """

    name = BACKEND_MEMORY

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._data: dict[str, tuple[str, float]] = {}
        self._mutex = threading.Lock()

    def _live_value(self, key: str) -> str | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, deadline = entry
        if self._clock() >= deadline:
            del self._data[key]
            return None
        return value

    def _prune_expired(self) -> None:
        now = self._clock()
        expired = [key for key, (_, deadline) in self._data.items() if now >= deadline]
        for key in expired:
            del self._data[key]

    def create_if_absent(self, key: str, value: str, ttl_ms: int) -> bool:
        with self._mutex:
            self._prune_expired()
            if self._live_value(key) is not None:
                return False
            self._data[key] = (value, self._clock() + ttl_ms / 1000.0)
            return True

    def conditional_delete(self, key: str, expected_value: str) -> int:
        with self._mutex:
            if self._live_value(key) != expected_value:
                return 0
            del self._data[key]
            return 1

    def conditional_expire(self, key: str, expected_value: str, ttl_ms: int) -> int:
        with self._mutex:
            if self._live_value(key) != expected_value:
                return 0
            self._data[key] = (expected_value, self._clock() + ttl_ms / 1000.0)
            return 1

    def __len__(self) -> int:
        """Number of stored entries, expired ones included until pruned."""
        with self._mutex:
            return len(self._data)

    def get(self, key: str) -> str | None:
        """Return the current owner of key, if any (diagnostics only)."""
        with self._mutex:
            return self._live_value(key)


def create_key_store(
    config: MasterLockConfig,
    backend_name: str | None = None,
    *,
    logger: logging.Logger | None = None,
) -> KeyStore:
    """Create a key store from explicit value or the configured backend."""
    log = logger or logging.getLogger(__name__)
    requested = (backend_name or config.backend or BACKEND_REDIS).strip().lower()

    if requested == BACKEND_MEMORY:
        return InMemoryKeyStore()

    if requested == BACKEND_REDIS:
        if not config.redis_url:
            raise UnconfiguredError("redis must be configured", "set redis_url or MASTERLOCK_REDIS_URL")
        return RedisKeyStore.from_url(config.redis_url, logger=log)

    fallback = BACKEND_REDIS if config.redis_url else BACKEND_MEMORY
    log.warning("Unknown key store backend '%s'; falling back to '%s'", requested, fallback)
    return create_key_store(config, fallback, logger=log)
