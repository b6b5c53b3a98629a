"""Core module - Foundation components with no internal dependencies.

This module provides the basic building blocks used by the lock subsystem:
- Version information
- Custom exceptions
- Configuration dataclass and validation
- Constants and defaults
"""

from masterlock.core.version import __version__

from masterlock.core.exceptions import (
    MasterLockError,
    ConfigurationError,
    StoreUnavailableError,
    LockNotAcquiredError,
    UnconfiguredError,
    NotStartedError,
    AlreadyStartedError,
)

from masterlock.core.config import MasterLockConfig

from masterlock.core.config_validation import ConfigValidator, validate_config

from masterlock.core.constants import (
    DEFAULT_ACQUIRE_TIMEOUT,
    DEFAULT_EXTEND_INTERVAL,
    DEFAULT_KEY_PREFIX,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_SLEEP_TIME,
    DEFAULT_TTL,
    ENV_VAR_MAPPING,
)

__all__ = [
    # Version
    '__version__',
    # Exceptions
    'MasterLockError',
    'ConfigurationError',
    'StoreUnavailableError',
    'LockNotAcquiredError',
    'UnconfiguredError',
    'NotStartedError',
    'AlreadyStartedError',
    # Config
    'MasterLockConfig',
    'ConfigValidator',
    'validate_config',
    # Constants
    'DEFAULT_ACQUIRE_TIMEOUT',
    'DEFAULT_EXTEND_INTERVAL',
    'DEFAULT_KEY_PREFIX',
    'DEFAULT_POLL_INTERVAL',
    'DEFAULT_SLEEP_TIME',
    'DEFAULT_TTL',
    'ENV_VAR_MAPPING',
]
