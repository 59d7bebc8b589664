"""Cancellation scopes for thread-based work.

A ``CancelScope`` is shared by the caller and every thread working on its
behalf. It is cancelled explicitly, by an optional deadline, or through its
parent scope.
"""

from __future__ import annotations

import threading
import time

from ragingest.errors import CancellationError

# Upper bound on a single wait slice so parent scopes and deadlines are noticed.
_POLL_INTERVAL = 0.05


class CancelScope:
    """Caller-controlled lifetime boundary for one unit of work."""

    def __init__(self, timeout: float | None = None, parent: CancelScope | None = None):
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None
        self._parent = parent

    def __enter__(self) -> CancelScope:
        return self

    def __exit__(self, *exc_info) -> None:
        self.cancel()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        if self._deadline is not None and time.monotonic() >= self._deadline:
            return True
        return self._parent is not None and self._parent.cancelled

    @property
    def reason(self) -> str:
        if self._parent is not None and self._parent.cancelled:
            return self._parent.reason
        if self._deadline is not None and time.monotonic() >= self._deadline:
            return "deadline exceeded"
        return "cancelled"

    def remaining(self) -> float | None:
        """Seconds until the nearest deadline in the scope chain, or ``None``."""
        own = None if self._deadline is None else max(0.0, self._deadline - time.monotonic())
        parent = self._parent.remaining() if self._parent is not None else None
        if own is None:
            return parent
        if parent is None:
            return own
        return min(own, parent)

    def child(self, timeout: float | None = None) -> CancelScope:
        return CancelScope(timeout=timeout, parent=self)

    # ------------------------------------------------------------------
    # Blocking helpers
    # ------------------------------------------------------------------

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise CancellationError(self.reason)

    def sleep(self, seconds: float) -> None:
        """Sleep for ``seconds`` unless the scope is cancelled first.

        Raises:
            CancellationError: if the scope fires before the delay elapses.
        """
        end = time.monotonic() + max(0.0, seconds)
        while True:
            self.raise_if_cancelled()
            left = end - time.monotonic()
            if left <= 0:
                return
            self._event.wait(min(left, _POLL_INTERVAL))
