"""Lock service orchestrating store, registry, and renewal lifecycle."""

from __future__ import annotations

import logging
import os
import threading
import uuid
from collections.abc import Iterator
from contextlib import contextmanager

from masterlock.core.config import MasterLockConfig
from masterlock.core.config_validation import ConfigValidator, require, validate_config
from masterlock.core.exceptions import (
    AlreadyStartedError,
    LockNotAcquiredError,
    NotStartedError,
    StoreUnavailableError,
)
from masterlock.core.locks.backends import KeyStore, create_key_store
from masterlock.core.locks.redis_lock import RedisLock
from masterlock.core.locks.registry import Registry
from masterlock.core.locks.renewal import RenewalLoop
from masterlock.core.logging import with_log_context


class MasterLock:
    """Interprocess locking service.

    Only one thread on any machine sharing the key store can be inside
    `synchronize` for a given key. Locks are held until the block exits or the
    acquiring thread dies; while that thread is alive the renewal loop keeps
    extending the lock so long critical sections do not outlive the ttl.

    Construct one instance per process, call `start()` once, and pass the
    instance to whatever needs to take locks.
    """

    def __init__(
        self,
        config: MasterLockConfig | None = None,
        *,
        store: KeyStore | None = None,
        logger: logging.Logger | None = None,
    ):
        self.config = validate_config(config or MasterLockConfig())
        self.logger = logger or logging.getLogger(__name__)
        self._store = store
        self._registry: Registry | None = None
        self._loop: RenewalLoop | None = None
        self._start_lock = threading.Lock()

    @property
    def store(self) -> KeyStore:
        """The key store, created from config on first use.

        Raises:
            UnconfiguredError: no store was given and none is configured.
        """
        if self._store is None:
            self._store = create_key_store(self.config, logger=self.logger)
        return self._store

    @property
    def registry(self) -> Registry | None:
        return self._registry

    @property
    def started(self) -> bool:
        return self._registry is not None

    @property
    def is_running(self) -> bool:
        return self._loop is not None and self._loop.is_running

    def start(self) -> None:
        """Start the background renewal loop. Must be called before any lock is taken."""
        with self._start_lock:
            if self._registry is not None:
                raise AlreadyStartedError("MasterLock.start() was already called")
            registry = Registry(logger=self.logger)
            loop = RenewalLoop(registry, self.config.sleep_time, logger=self.logger)
            loop.start()
            self._registry = registry
            self._loop = loop

    def stop(self, timeout: float | None = 5.0) -> None:
        """Stop renewing. Held locks then expire after their ttl.

        The service counts as not started afterwards, so `synchronize` raises
        NotStartedError until `start()` is called again.
        """
        with self._start_lock:
            loop = self._loop
            self._registry = None
            self._loop = None
        if loop is not None:
            loop.stop(timeout)

    def generate_owner(self) -> str:
        """Owner token unique to this acquisition attempt."""
        return f"{self.config.hostname}:{os.getpid()}:{threading.get_ident()}:{uuid.uuid4().hex}"

    @contextmanager
    def synchronize(
        self,
        key: str,
        *,
        ttl: float | None = None,
        acquire_timeout: float | None = None,
        extend_interval: float | None = None,
        enabled: bool = True,
    ) -> Iterator[RedisLock | None]:
        """Hold the lock for `key` for the duration of the with-block.

        Args:
            key: Identifier of the locked resource
            ttl: Seconds before the lock expires if not renewed
            acquire_timeout: Seconds to wait for a contended lock
            extend_interval: Seconds the lock may be held before renewal
            enabled: When False the block runs without taking the lock

        Yields:
            The held RedisLock, or None when `enabled` is False.

        Raises:
            UnconfiguredError: no key store is configured
            NotStartedError: called before `start()`
            ConfigurationError: invalid ttl/extend_interval/acquire_timeout
            LockNotAcquiredError: the lock was not acquired within the timeout
            StoreUnavailableError: the key store could not be reached
        """
        store = self.store
        registry = self._registry
        if registry is None:
            raise NotStartedError()

        ttl = self.config.ttl if ttl is None else ttl
        acquire_timeout = self.config.acquire_timeout if acquire_timeout is None else acquire_timeout
        extend_interval = self.config.extend_interval if extend_interval is None else extend_interval
        require(ConfigValidator.validate_timing(ttl, extend_interval), "ttl")
        require(ConfigValidator.validate_timeout(acquire_timeout), "acquire_timeout")

        if not enabled:
            yield None
            return

        owner = self.generate_owner()
        log = with_log_context(self.logger, lock_key=key, owner=owner)
        lock = RedisLock(
            store,
            key,
            owner,
            ttl,
            key_prefix=self.config.key_prefix,
            cluster=self.config.cluster,
            logger=self.logger,
        )
        if not lock.acquire(acquire_timeout):
            raise LockNotAcquiredError(key, acquire_timeout)

        registration = registry.register(lock, extend_interval)
        log.debug("Acquired lock %s", key)
        try:
            yield lock
        finally:
            registry.unregister(registration)
            self._release(lock, log)

    @staticmethod
    def _release(lock: RedisLock, log) -> None:
        # The block has already finished; a failed release only gets logged.
        try:
            released = lock.release()
        except StoreUnavailableError as e:
            log.warning("Failed to release lock %s: %s", lock.key, e)
            return
        if released:
            log.debug("Released lock %s", lock.key)
        else:
            log.warning("Failed to release lock %s: no longer owned", lock.key)
