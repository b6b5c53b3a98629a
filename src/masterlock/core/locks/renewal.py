"""Background thread that keeps registered locks alive."""

from __future__ import annotations

import logging
import threading

from masterlock.core.config_validation import ConfigValidator, require
from masterlock.core.exceptions import AlreadyStartedError
from masterlock.core.locks.registry import Registry


class RenewalLoop:
    """Runs `Registry.extend_locks` every `sleep_time` seconds.

    Intended to be started once and left running for the lifetime of the
    process. Starting it a second time raises AlreadyStartedError. The thread
    is a daemon, so it never holds up interpreter exit.
    """

    def __init__(self, registry: Registry, sleep_time: float, *, logger: logging.Logger | None = None):
        require(ConfigValidator.validate_ttl(sleep_time, "sleep_time"), "sleep_time")
        self.registry = registry
        self.sleep_time = sleep_time
        self.logger = logger or logging.getLogger(__name__)
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._state_lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    def start(self) -> None:
        with self._state_lock:
            if self._thread is not None:
                raise AlreadyStartedError()
            self._stop.clear()
            self._thread = threading.Thread(target=self._run, daemon=True, name="masterlock-renewal")
            self._thread.start()
        self.logger.debug("Renewal loop started (every %.3fs)", self.sleep_time)

    def stop(self, timeout: float | None = 5.0) -> None:
        """Stop the loop and wait for the thread to exit. Used by tests and shutdown hooks."""
        self._stop.set()
        thread = self._thread
        if thread is not None and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=timeout)

    def _run(self) -> None:
        while True:
            try:
                self.registry.extend_locks()
            except Exception:
                self.logger.exception("Renewal sweep failed")
            if self._stop.wait(self.sleep_time):
                return
