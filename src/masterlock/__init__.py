"""
masterlock - Interprocess locking on a shared Redis key store.

Only one thread on any machine can hold a given lock at a time. Locks expire
in the store so a crashed holder cannot keep them forever, and a background
renewal loop extends locks whose owning thread is still working.

    from masterlock import MasterLock, MasterLockConfig

    service = MasterLock(MasterLockConfig(redis_url="redis://localhost:6379/0"))
    service.start()
    with service.synchronize("nightly-report"):
        ...
"""

from __future__ import annotations

import importlib
from typing import TYPE_CHECKING

from masterlock.core.version import __version__

_EXPORTS = {
    "MasterLock": "masterlock.core.locks.manager",
    "RedisLock": "masterlock.core.locks.redis_lock",
    "Registry": "masterlock.core.locks.registry",
    "Registration": "masterlock.core.locks.registry",
    "RenewalLoop": "masterlock.core.locks.renewal",
    "KeyStore": "masterlock.core.locks.backends",
    "RedisKeyStore": "masterlock.core.locks.backends",
    "InMemoryKeyStore": "masterlock.core.locks.backends",
    "create_key_store": "masterlock.core.locks.backends",
    "MasterLockConfig": "masterlock.core.config",
    "setup_logging": "masterlock.core.logging",
    "MasterLockError": "masterlock.core.exceptions",
    "ConfigurationError": "masterlock.core.exceptions",
    "StoreUnavailableError": "masterlock.core.exceptions",
    "LockNotAcquiredError": "masterlock.core.exceptions",
    "UnconfiguredError": "masterlock.core.exceptions",
    "NotStartedError": "masterlock.core.exceptions",
    "AlreadyStartedError": "masterlock.core.exceptions",
}

__all__ = ["__version__", *_EXPORTS]

if TYPE_CHECKING:
    from masterlock.core.config import MasterLockConfig
    from masterlock.core.exceptions import (
        AlreadyStartedError,
        ConfigurationError,
        LockNotAcquiredError,
        MasterLockError,
        NotStartedError,
        StoreUnavailableError,
        UnconfiguredError,
    )
    from masterlock.core.locks.backends import InMemoryKeyStore, KeyStore, RedisKeyStore, create_key_store
    from masterlock.core.locks.manager import MasterLock
    from masterlock.core.locks.redis_lock import RedisLock
    from masterlock.core.locks.registry import Registration, Registry
    from masterlock.core.locks.renewal import RenewalLoop
    from masterlock.core.logging import setup_logging


def __getattr__(name: str):
    # Resolved on first access so `import masterlock` does not pull in redis-py.
    try:
        module_name = _EXPORTS[name]
    except KeyError:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}") from None
    value = getattr(importlib.import_module(module_name), name)
    globals()[name] = value
    return value
