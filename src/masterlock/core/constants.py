"""Constants and default values for masterlock.

This module centralizes timing defaults, key naming, and the environment
variables recognised by `MasterLockConfig.from_env`.
"""

# ==================== LOCK TIMING DEFAULTS ====================

# All durations are in seconds
DEFAULT_ACQUIRE_TIMEOUT: float = 5  # How long synchronize() waits for a held lock
DEFAULT_EXTEND_INTERVAL: float = 15  # Minimum lock age before the sweep renews it
DEFAULT_SLEEP_TIME: float = 5  # Pause between renewal sweeps
DEFAULT_TTL: float = 60  # Store-side expiry of an unrenewed lock
DEFAULT_POLL_INTERVAL: float = 0.1  # Pause between acquire attempts on a contended key

# ==================== KEY NAMING ====================

DEFAULT_KEY_PREFIX: str = "masterlock"

# ==================== BACKENDS ====================

BACKEND_REDIS: str = "redis"
BACKEND_MEMORY: str = "memory"
SUPPORTED_BACKENDS: tuple[str, ...] = (BACKEND_REDIS, BACKEND_MEMORY)

# ==================== LOGGING DEFAULTS ====================

LOGGER_NAME: str = "masterlock"
VALID_LOG_LEVELS: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# ==================== ENVIRONMENT ====================

# Config field -> environment variable
ENV_VAR_MAPPING: dict[str, str] = {
    "redis_url": "MASTERLOCK_REDIS_URL",
    "backend": "MASTERLOCK_BACKEND",
    "acquire_timeout": "MASTERLOCK_ACQUIRE_TIMEOUT",
    "extend_interval": "MASTERLOCK_EXTEND_INTERVAL",
    "key_prefix": "MASTERLOCK_KEY_PREFIX",
    "sleep_time": "MASTERLOCK_SLEEP_TIME",
    "ttl": "MASTERLOCK_TTL",
    "cluster": "MASTERLOCK_CLUSTER",
    "hostname": "MASTERLOCK_HOSTNAME",
}

TRUTHY_VALUES: frozenset[str] = frozenset({"1", "true", "yes", "on"})
FALSY_VALUES: frozenset[str] = frozenset({"0", "false", "no", "off", ""})
