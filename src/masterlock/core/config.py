"""Configuration dataclass for masterlock.

`MasterLockConfig` centralizes every tunable in one place for type safety and
easy testing. It can be created directly in code or from environment
variables.
"""

from __future__ import annotations

import os
import socket
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field, fields, replace
from typing import Any

from masterlock.core.constants import (
    BACKEND_REDIS,
    DEFAULT_ACQUIRE_TIMEOUT,
    DEFAULT_EXTEND_INTERVAL,
    DEFAULT_KEY_PREFIX,
    DEFAULT_SLEEP_TIME,
    DEFAULT_TTL,
    ENV_VAR_MAPPING,
    FALSY_VALUES,
    TRUTHY_VALUES,
)
from masterlock.core.exceptions import ConfigurationError

_FLOAT_FIELDS = {"acquire_timeout", "extend_interval", "sleep_time", "ttl"}
_BOOL_FIELDS = {"cluster"}


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in TRUTHY_VALUES:
        return True
    if value in FALSY_VALUES:
        return False
    raise ConfigurationError(f"Invalid boolean for {name}", field=name, details=repr(raw))


def _parse_float(name: str, raw: str) -> float:
    try:
        return float(raw.strip())
    except ValueError as e:
        raise ConfigurationError(f"Invalid number for {name}", field=name, details=repr(raw)) from e


@dataclass
class MasterLockConfig:
    """Settings shared by every lock taken through a `MasterLock` service.

    Attributes:
        redis_url: Connection URL for the Redis key store (default: None)
        backend: Key store backend, "redis" or "memory" (default: "redis")
        acquire_timeout: Seconds to wait for a contended lock (default: 5)
        extend_interval: Seconds a lock may be held before renewal (default: 15)
        key_prefix: Namespace prepended to every lock key (default: "masterlock")
        sleep_time: Seconds between renewal sweeps (default: 5)
        ttl: Seconds before an unrenewed lock expires (default: 60)
        cluster: Wrap the prefix in a hash tag for Redis Cluster (default: False)
        hostname: Host component of generated owner tokens
    """

    redis_url: str | None = None
    backend: str = BACKEND_REDIS
    acquire_timeout: float = DEFAULT_ACQUIRE_TIMEOUT
    extend_interval: float = DEFAULT_EXTEND_INTERVAL
    key_prefix: str = DEFAULT_KEY_PREFIX
    sleep_time: float = DEFAULT_SLEEP_TIME
    ttl: float = DEFAULT_TTL
    cluster: bool = False
    hostname: str = field(default_factory=socket.gethostname)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def with_overrides(self, **overrides: Any) -> MasterLockConfig:
        """Return a copy with the given non-None fields replaced."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides: Any) -> MasterLockConfig:
        """Create configuration from MASTERLOCK_* environment variables.

        Priority: 1) keyword overrides, 2) environment, 3) dataclass defaults.
        """
        env = os.environ if environ is None else environ
        known = {f.name for f in fields(cls)}
        values: dict[str, Any] = {}

        for name, env_var in ENV_VAR_MAPPING.items():
            raw = env.get(env_var)
            if raw is None or name not in known:
                continue
            if name in _FLOAT_FIELDS:
                values[name] = _parse_float(env_var, raw)
            elif name in _BOOL_FIELDS:
                values[name] = _parse_bool(env_var, raw)
            else:
                values[name] = raw.strip()

        unknown = set(overrides) - known
        if unknown:
            raise ConfigurationError("Unknown configuration fields", details=", ".join(sorted(unknown)))
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
