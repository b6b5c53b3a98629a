"""Bookkeeping for locks held by this process.

When a lock is acquired it is registered here. The renewal loop periodically
calls `Registry.extend_locks`, which renews every registered lock as long as
the thread that acquired it is still alive and has not released it. A lock
that fails to renew is marked released and dropped.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from masterlock.core.config_validation import ConfigValidator, require
from masterlock.core.exceptions import StoreUnavailableError


class ExtendableLock(Protocol):
    key: str

    def extend(self) -> bool: ...


@dataclass(eq=False)
class Registration:
    """Receipt returned by `Registry.register`.

    `released` only ever moves from False to True. All reads and writes of
    `released` and `acquired_at` happen under `mutex`.
    """

    lock: ExtendableLock
    extend_interval: float
    acquired_at: float
    is_owner_alive: Callable[[], bool]
    thread_name: str | None = None
    released: bool = False
    mutex: threading.Lock = field(default_factory=threading.Lock, repr=False)


class Registry:
    """Concurrent collection of held locks with a renewal sweep."""

    def __init__(self, *, clock: Callable[[], float] = time.monotonic, logger: logging.Logger | None = None):
        self._clock = clock
        self._locks: list[Registration] = []
        self._locks_mutex = threading.Lock()
        self.logger = logger or logging.getLogger(__name__)

    @property
    def locks(self) -> list[Registration]:
        """Snapshot of current registrations."""
        with self._locks_mutex:
            return list(self._locks)

    def __len__(self) -> int:
        with self._locks_mutex:
            return len(self._locks)

    def register(
        self,
        lock: ExtendableLock,
        extend_interval: float,
        *,
        is_owner_alive: Callable[[], bool] | None = None,
    ) -> Registration:
        """Register a held lock to be renewed every extend_interval seconds.

        Args:
            lock: A currently held lock exposing `extend()`
            extend_interval: Seconds the lock may age before it is renewed
            is_owner_alive: Liveness check for the owning context. Defaults to
                the calling thread's `is_alive`.
        """
        require(ConfigValidator.validate_extend_interval(extend_interval), "extend_interval")
        current = threading.current_thread()
        registration = Registration(
            lock=lock,
            extend_interval=extend_interval,
            acquired_at=self._clock(),
            is_owner_alive=is_owner_alive or current.is_alive,
            thread_name=current.name,
        )
        with self._locks_mutex:
            self._locks.append(registration)
        return registration

    def unregister(self, registration: Registration) -> None:
        """Stop renewing a lock. Safe to call more than once."""
        with registration.mutex:
            registration.released = True

    def extend_locks(self) -> None:
        """Renew every registration that is due, then drop released ones.

        Store round trips happen outside the registry lock so that register
        and unregister never wait on network I/O.
        """
        with self._locks_mutex:
            snapshot = list(self._locks)

        for registration in snapshot:
            self._extend_lock(registration)

        with self._locks_mutex:
            self._locks = [r for r in self._locks if not r.released]

    def _extend_lock(self, registration: Registration) -> None:
        with registration.mutex:
            now = self._clock()
            try:
                owner_alive = registration.is_owner_alive()
            except Exception:
                self.logger.exception("Liveness check failed for lock %s, skipping this sweep", registration.lock.key)
                return
            if not owner_alive:
                # The TTL cleans up the key; a release from here could race a new owner.
                registration.released = True
                self.logger.debug(
                    "Owner %s of lock %s is gone; abandoning renewal",
                    registration.thread_name,
                    registration.lock.key,
                )
                return

            if registration.released or now - registration.acquired_at < registration.extend_interval:
                return

            try:
                extended = registration.lock.extend()
            except StoreUnavailableError as e:
                self.logger.warning("Could not renew lock %s, will retry next sweep: %s", registration.lock.key, e)
                return
            except Exception:
                self.logger.exception("Unexpected error renewing lock %s", registration.lock.key)
                return

            if extended:
                registration.acquired_at = now
            else:
                registration.released = True
                self.logger.warning("Lock %s was lost before it could be renewed", registration.lock.key)
