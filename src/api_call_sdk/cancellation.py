"""Caller-visible cancellation handles."""

from __future__ import annotations

import threading
from typing import Callable

from .errors import AbortedError


class CancellationHandle:
    """One-shot cancellation signal shared between a caller and a call.

    Callbacks registered before ``cancel()`` run once when it fires;
    callbacks registered afterwards run immediately.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._cancelled = False
        self._reason: str | None = None
        self._callbacks: list[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        """Whether cancel() has been called."""
        return self._cancelled

    @property
    def reason(self) -> str | None:
        """Reason given to cancel()."""
        return self._reason

    def cancel(self, reason: str = "Request aborted") -> None:
        """Fire the signal. Later calls are no-ops."""
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
            self._reason = reason
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    def add_callback(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register callback and return a function that unregisters it."""
        with self._lock:
            if not self._cancelled:
                self._callbacks.append(callback)
                return lambda: self._remove(callback)
        callback()
        return lambda: None

    def _remove(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    def raise_if_cancelled(self) -> None:
        """Raise AbortedError if the signal has fired."""
        if self._cancelled:
            raise AbortedError(self._reason or "Request aborted")

    def __repr__(self) -> str:
        return f"CancellationHandle(cancelled={self._cancelled})"


def create_cancellation_handle() -> CancellationHandle:
    """Create a new, un-fired cancellation handle."""
    return CancellationHandle()
