"""Domain exceptions shared by the core and infrastructure layers."""

from typing import Optional


class ZoomNetError(Exception):
    """Base class for errors raised by zoomnet itself."""


class JobCancelledError(ZoomNetError):
    """Raised by a job that observed the shared cancellation signal.

    This is the single error kind the executor maps to a Cancelled outcome.
    """

    def __init__(self, message: str = "Operation cancelled"):
        super().__init__(message)


class ApiError(ZoomNetError):
    """The API answered with an error status."""

    def __init__(self, status_code: int, message: str, code: Optional[int] = None):
        self.status_code = status_code
        self.code = code  # Zoom's own error code from the response body, if any
        self.message = message
        super().__init__(f"HTTP {status_code}: {message}")


class UnknownJobError(ZoomNetError, KeyError):
    """A job name that is not in the registry was requested."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "Unknown job"


class ConfigurationError(ZoomNetError):
    """Required configuration is missing or invalid."""


def root_cause(exc: BaseException) -> BaseException:
    """Walks the exception chain down to the innermost exception.

    Follows explicit chaining (``raise ... from``) first, then implicit context
    unless it was suppressed. Cycles are cut.
    """
    seen = {id(exc)}
    current = exc
    while True:
        nxt = current.__cause__
        if nxt is None and not current.__suppress_context__:
            nxt = current.__context__
        if nxt is None or id(nxt) in seen:
            return current
        seen.add(id(nxt))
        current = nxt


def root_cause_message(exc: BaseException) -> str:
    """Message of the innermost exception, falling back to its type name."""
    cause = root_cause(exc)
    return str(cause) or type(cause).__name__
