"""Configuration validation helpers for masterlock."""

import math
from urllib.parse import urlparse

from masterlock.core.config import MasterLockConfig
from masterlock.core.constants import SUPPORTED_BACKENDS
from masterlock.core.exceptions import ConfigurationError

_REDIS_SCHEMES = {"redis", "rediss", "unix"}


class ConfigValidator:
    """Provides detailed validation and messages for lock settings."""

    @staticmethod
    def validate_ttl(ttl: float, name: str = "ttl") -> tuple[bool, str | None]:
        """
        Validate that a duration is finite, positive, and at least 1ms.

        Args:
            ttl: Duration in seconds
            name: Field name used in the error message

        Returns:
            Tuple of (is_valid, error_message). error_message is None if valid.
        """
        if isinstance(ttl, bool) or not isinstance(ttl, (int, float)):
            return False, f"{name} must be a number, got {type(ttl).__name__}"
        if not math.isfinite(ttl) or ttl <= 0:
            return False, f"{name} must be a finite positive number of seconds, got {ttl}"
        if int(ttl * 1000) <= 0:
            return False, f"{name} {ttl} is below the store's one millisecond resolution"
        return True, None

    @staticmethod
    def validate_extend_interval(extend_interval: float) -> tuple[bool, str | None]:
        if isinstance(extend_interval, bool) or not isinstance(extend_interval, (int, float)):
            return False, f"extend_interval must be a number, got {type(extend_interval).__name__}"
        if not math.isfinite(extend_interval):
            return False, "extend_interval must be finite"
        if extend_interval < 0:
            return False, "extend_interval cannot be negative"
        return True, None

    @staticmethod
    def validate_timing(ttl: float, extend_interval: float) -> tuple[bool, str | None]:
        """
        Validate ttl and extend_interval together.

        The extend interval must be strictly shorter than the ttl, otherwise a
        lock can expire before the renewal sweep ever looks at it.
        """
        for check in (
            ConfigValidator.validate_ttl(ttl),
            ConfigValidator.validate_extend_interval(extend_interval),
        ):
            if not check[0]:
                return check
        if ttl <= extend_interval:
            return False, f"ttl ({ttl}) must be greater than extend_interval ({extend_interval})"
        return True, None

    @staticmethod
    def validate_timeout(timeout: float, name: str = "acquire_timeout") -> tuple[bool, str | None]:
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
            return False, f"{name} must be a number, got {type(timeout).__name__}"
        if math.isnan(timeout) or timeout < 0:
            return False, f"{name} cannot be negative"
        return True, None

    @staticmethod
    def validate_redis_url(url: str | None) -> tuple[bool, str | None]:
        if not url or not url.strip():
            return False, "redis_url cannot be empty"
        parsed = urlparse(url.strip())
        if parsed.scheme not in _REDIS_SCHEMES:
            return False, (
                f"redis_url scheme '{parsed.scheme}' is not supported. "
                f"Use one of: {', '.join(sorted(_REDIS_SCHEMES))}"
            )
        if parsed.scheme != "unix" and not parsed.hostname:
            return False, "redis_url is missing a host"
        return True, None

    @staticmethod
    def validate_backend(backend: str) -> tuple[bool, str | None]:
        if backend not in SUPPORTED_BACKENDS:
            return False, f"Unknown backend '{backend}'. Use one of: {', '.join(SUPPORTED_BACKENDS)}"
        return True, None


def require(check: tuple[bool, str | None], field: str | None = None) -> None:
    """Raise ConfigurationError when a validator result is negative."""
    is_valid, message = check[0], check[1]
    if not is_valid:
        raise ConfigurationError(message or "invalid configuration", field=field)


def validate_config(config: MasterLockConfig) -> MasterLockConfig:
    """Validate a complete configuration, raising on the first problem."""
    require(ConfigValidator.validate_backend(config.backend), "backend")
    require(ConfigValidator.validate_timing(config.ttl, config.extend_interval), "ttl")
    require(ConfigValidator.validate_timeout(config.acquire_timeout), "acquire_timeout")
    require(ConfigValidator.validate_ttl(config.sleep_time, "sleep_time"), "sleep_time")
    if config.redis_url is not None:
        require(ConfigValidator.validate_redis_url(config.redis_url), "redis_url")
    if not config.key_prefix:
        raise ConfigurationError("key_prefix cannot be empty", field="key_prefix")
    return config
