"""Cooperative cancellation flag shared by the walker and the workers."""

from __future__ import annotations

import threading


class CancellationToken:
    """Monotonic flag: once cancelled it stays cancelled for the run."""

    def __init__(self) -> None:
        self._event = threading.Event()
        # reentrant: a second signal can re-enter cancel() on the main thread
        self._lock = threading.RLock()
        self._reason = ""

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str:
        return self._reason

    def cancel(self, reason: str = "cancelled") -> bool:
        """Set the flag. Returns True only for the call that actually set it."""
        with self._lock:
            if self._event.is_set():
                return False
            self._reason = reason
            self._event.set()
            return True

    def wait(self, timeout: float | None = None) -> bool:
        return self._event.wait(timeout)
