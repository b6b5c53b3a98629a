"""Custom exceptions for masterlock.

Ordinary lock contention and ownership loss are reported as boolean results by
the lock protocol. The classes below cover the cases that callers must be able
to tell apart from those results.
"""


class MasterLockError(Exception):
    """Base exception for all masterlock errors."""

    def __init__(self, message: str, details: str | None = None):
        self.message = message
        self.details = details
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class ConfigurationError(MasterLockError, ValueError):
    """Exception raised for invalid lock parameters or settings.

    Examples:
        - Non-positive ttl
        - Negative extend interval
        - Extend interval not shorter than ttl
        - Malformed Redis URL
    """

    def __init__(self, message: str, field: str | None = None, details: str | None = None):
        self.field = field
        super().__init__(message, details)


class StoreUnavailableError(MasterLockError):
    """Exception raised when the key store cannot be reached.

    The outcome of the attempted operation is unknown; it must not be treated
    as "lock not held".
    """

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        key: str | None = None,
        details: str | None = None,
        original_error: Exception | None = None,
    ):
        self.operation = operation
        self.key = key
        self.original_error = original_error
        super().__init__(message, details)

    def __str__(self) -> str:
        parts = [self.message]
        if self.operation:
            parts.append(f"during {self.operation}")
        if self.key:
            parts.append(f"on '{self.key}'")
        if self.details:
            parts.append(self.details)
        return " - ".join(parts)


class LockNotAcquiredError(MasterLockError):
    """Raised by `MasterLock.synchronize` when the acquire timeout elapses."""

    def __init__(self, key: str, timeout: float | None = None):
        self.key = key
        self.timeout = timeout
        details = f"gave up after {timeout}s" if timeout is not None else None
        super().__init__(f"Could not acquire lock '{key}'", details)


class UnconfiguredError(MasterLockError):
    """Raised when a required setting (such as the key store) is missing."""


class NotStartedError(MasterLockError):
    """Raised when locks are requested before the renewal loop is started."""

    def __init__(self, message: str = "MasterLock has not been started; call start() first"):
        super().__init__(message)


class AlreadyStartedError(MasterLockError):
    """Raised when the renewal loop is started a second time."""

    def __init__(self, message: str = "Renewal loop is already running"):
        super().__init__(message)
