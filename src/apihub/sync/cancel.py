"""Cancellation and deadlines for long-running sync passes."""

import threading
import time

from apihub.errors import CancelledError


class CancelToken:
    """Cancellation flag with an optional deadline.

    Can be cancelled from another thread. Passed to every remote and
    storage call of a sync pass.
    """

    def __init__(self, timeout: float | None = None):
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    def remaining(self) -> float | None:
        """Seconds until the deadline, or None when there is none."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def check(self) -> None:
        """Raise CancelledError if cancelled or past the deadline."""
        if self._event.is_set():
            raise CancelledError("operation cancelled")
        if self._deadline is not None and time.monotonic() >= self._deadline:
            raise CancelledError("deadline exceeded")


def check(cancel: CancelToken | None) -> None:
    if cancel is not None:
        cancel.check()
