"""Cancellable execution context shared by the lifecycle, probes and start functions."""

from __future__ import annotations

import threading

from wisent.framework.exception import ContextCancelledError


class ExecutionContext:
    """A deadline-free cancellation signal.

    One context is created per Wisent.test / benchmark / benchmark_parallel call and
    handed to the start function and the readiness probe. Cancellation is cooperative:
    holders observe it through `cancelled`, `check()` or `wait()`.

    Properties:
        cancelled: True once cancel() has been called (bool).
        reason: Optional message passed to cancel() (str or None).
    """

    def __init__(self):
        self.__event = threading.Event()
        self.__reason = None

    @property
    def cancelled(self) -> bool:
        return self.__event.is_set()

    @property
    def reason(self) -> str | None:
        return self.__reason

    def cancel(self, reason: str | None = None) -> None:
        """Cancels the context. Further calls are no-ops."""
        if not self.__event.is_set():
            self.__reason = reason
            self.__event.set()

    def wait(self, timeout: float | None = None) -> bool:
        """Sleeps up to timeout seconds, waking early on cancellation.

        Returns:
            True if the context is cancelled (bool).
        """
        return self.__event.wait(timeout)

    def check(self) -> None:
        """Raises ContextCancelledError if the context has been cancelled."""
        if self.cancelled:
            raise ContextCancelledError(self.__reason or "context cancelled")

    def __repr__(self) -> str:
        state = "cancelled" if self.cancelled else "active"
        return f"<{self.__class__.__name__} {state}>"
