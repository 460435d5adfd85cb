"""Exceptions raised by the wisent harness."""


class Error(Exception):
    """Base class for exceptions raised by this package."""

    pass


class AlreadyLaunchedError(Error):
    """Raised when ProcessHarness.Launch is called twice on the same object."""

    pass


class NotLaunchedError(Error):
    """Raised when certain ProcessHarness methods are called before Launch."""

    pass


class StartupError(Error):
    """Raised when a start capability could not launch the service under test."""

    pass


class ContextCancelledError(Error):
    """Raised when an ExecutionContext has been cancelled."""

    pass


class ReadinessError(Error):
    """Base class for readiness probe failures. Aborts the run before any case executes."""

    pass


class ReadinessTimeoutError(ReadinessError):
    """Raised when the readiness probe did not see the service ready within its timeout."""

    def __init__(self, url, timeout_secs):
        super().__init__(f"health check timeout reached: {url} not ready within {timeout_secs}s")
        self.url = url
        self.timeout_secs = timeout_secs


class ReadinessCancelledError(ReadinessError, ContextCancelledError):
    """Raised when the execution context is cancelled while probing."""

    pass


class AssertionFailure(Error, AssertionError):
    """Raised by test contexts when an assertion helper reports a failure.

    Scoped to a single case or benchmark iteration.
    """

    pass
