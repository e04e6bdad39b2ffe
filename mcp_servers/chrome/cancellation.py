"""Cancellation tokens for suspending driver waits.

A CancelToken is created per tool call and handed down to every wait loop
(navigation lifecycle, selector polling, typing delays). The MCP host cancels it
when the client sends `notifications/cancelled` for the request.
"""

from __future__ import annotations

import threading
import time


class OperationCancelled(Exception):
    """Raised inside a wait loop once its token has been cancelled."""


class CancelToken:
    def __init__(self) -> None:
        self._event = threading.Event()
        self.reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str | None = None) -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelled(self.reason or "Request cancelled")

    def sleep(self, seconds: float) -> None:
        """Sleep up to `seconds`, waking early (and raising) on cancellation."""
        if seconds > 0:
            self._event.wait(seconds)
        self.raise_if_cancelled()


NEVER_CANCELLED = CancelToken()


class Deadline:
    """Absolute deadline helper for polling loops."""

    def __init__(self, timeout: float) -> None:
        self.timeout = max(0.0, float(timeout))
        self._end = time.monotonic() + self.timeout

    def remaining(self) -> float:
        return max(0.0, self._end - time.monotonic())

    def expired(self) -> bool:
        return time.monotonic() >= self._end
