"""Cooperative cancellation for lock waits and subprocesses."""

import threading
import time
from typing import Optional

from .exceptions import CancelledError


class CancelToken:
    """
    A cancel signal with an optional deadline.

    The token fires when ``cancel()`` is called or when the deadline passes,
    whichever comes first. Lock waits poll it; subprocesses receive
    ``remaining()`` as their kill timeout.

    Usage:
        token = CancelToken(timeout=30)
        gateway.describe("actions/checkout", "--tags", sha, cancel=token)
    """

    def __init__(self, timeout: Optional[float] = None):
        self._event = threading.Event()
        self._deadline = None if timeout is None else time.monotonic() + timeout

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    def remaining(self) -> Optional[float]:
        """Seconds left until the deadline, None when there is no deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def raise_if_cancelled(self, what: str) -> None:
        if self.cancelled:
            raise CancelledError(what)


def raise_if_cancelled(cancel: Optional[CancelToken], what: str) -> None:
    if cancel is not None:
        cancel.raise_if_cancelled(what)


def remaining(cancel: Optional[CancelToken]) -> Optional[float]:
    return None if cancel is None else cancel.remaining()
