"""Locking subsystem for cross-process coordination.

This package keeps the lock protocol, the renewal registry, and the key store
backends behind a small stable API.
"""

from masterlock.core.locks.backends import (
    InMemoryKeyStore,
    KeyStore,
    RedisKeyStore,
    create_key_store,
)
from masterlock.core.locks.manager import MasterLock
from masterlock.core.locks.redis_lock import RedisLock, format_lock_key
from masterlock.core.locks.registry import Registration, Registry
from masterlock.core.locks.renewal import RenewalLoop

__all__ = [
    "InMemoryKeyStore",
    "KeyStore",
    "MasterLock",
    "RedisKeyStore",
    "RedisLock",
    "Registration",
    "Registry",
    "RenewalLoop",
    "create_key_store",
    "format_lock_key",
]
