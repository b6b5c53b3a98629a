"""Single-key mutex on a shared key store.

Follows the SET NX PX pattern documented at https://redis.io/commands/set/.
A lock has a string key and, once acquired, is registered to an owner token.
Locks expire after their ttl so that a crashed holder cannot keep them
forever.
"""

from __future__ import annotations

import logging
import time

from masterlock.core.config_validation import ConfigValidator, require
from masterlock.core.constants import DEFAULT_KEY_PREFIX, DEFAULT_POLL_INTERVAL
from masterlock.core.locks.backends import KeyStore


def format_lock_key(key: str, prefix: str = DEFAULT_KEY_PREFIX, cluster: bool = False) -> str:
    """Build the store key for a logical lock key.

    In cluster mode the prefix is wrapped in a hash tag so every lock key
    routes to the same slot.
    """
    if cluster:
        return f"{{{prefix}}}:{key}"
    return f"{prefix}:{key}"


class RedisLock:
    """One attempt to hold one named resource.

    A handle becomes inert after release, successful or not; create a new
    handle with a fresh owner token for the next acquisition.
    """

    def __init__(
        self,
        store: KeyStore,
        key: str,
        owner: str,
        ttl: float,
        *,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        cluster: bool = False,
        sleep_interval: float = DEFAULT_POLL_INTERVAL,
        logger: logging.Logger | None = None,
    ):
        require(ConfigValidator.validate_ttl(ttl), "ttl")
        require(ConfigValidator.validate_ttl(sleep_interval, "sleep_interval"), "sleep_interval")
        self.store = store
        self.key = key
        self.owner = owner
        self.ttl = ttl
        self.key_prefix = key_prefix
        self.cluster = cluster
        self.sleep_interval = sleep_interval
        self.logger = logger or logging.getLogger(__name__)

    @property
    def redis_key(self) -> str:
        return format_lock_key(self.key, self.key_prefix, self.cluster)

    @property
    def ttl_ms(self) -> int:
        return int(self.ttl * 1000)

    def acquire(self, timeout: float) -> bool:
        """Attempt to acquire the lock, polling until timeout seconds elapse.

        A timeout of 0 makes exactly one attempt.

        Returns:
            Whether the lock was acquired.

        Raises:
            ConfigurationError: timeout is negative.
            StoreUnavailableError: the key store could not be reached.
        """
        require(ConfigValidator.validate_timeout(timeout, "timeout"), "timeout")
        deadline = time.monotonic() + timeout
        attempts = 0
        while True:
            attempts += 1
            if self.store.create_if_absent(self.redis_key, self.owner, self.ttl_ms):
                self.logger.debug("Acquired %s as %s after %d attempt(s)", self.redis_key, self.owner, attempts)
                return True
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                self.logger.debug("Gave up on %s after %d attempt(s) in %.2fs", self.redis_key, attempts, timeout)
                return False
            time.sleep(min(self.sleep_interval, remaining))

    def extend(self) -> bool:
        """Reset the expiry to a fresh ttl if this owner still holds the lock.

        Returns:
            False if the lock is absent or held by another owner.
        """
        extended = self.store.conditional_expire(self.redis_key, self.owner, self.ttl_ms) != 0
        if not extended:
            self.logger.debug("Could not extend %s: no longer owned by %s", self.redis_key, self.owner)
        return extended

    def release(self) -> bool:
        """Delete the lock if this owner still holds it.

        Returns:
            False if the lock is absent or held by another owner.
        """
        return self.store.conditional_delete(self.redis_key, self.owner) != 0

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(key={self.key!r}, owner={self.owner!r}, ttl={self.ttl})"
