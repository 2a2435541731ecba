"""Exception hierarchy shared by every backgrounder module.

Two families matter to callers:

* errors that the dispatch core routes to a reporter and then moves past
  (:class:`UnknownHandlerError`, :class:`HandlerError`,
  :class:`HandlerTimeout`, :class:`CaptureDecodeError`);
* configuration errors that make routing itself impossible and are raised
  straight to the caller (:class:`UnknownReporterError`,
  :class:`MalformedHandlerSpecError`).
"""

from __future__ import annotations


class BackgroundError(Exception):
    """Base class for all backgrounder errors."""


class UnknownNameError(BackgroundError, LookupError):
    """A registry was asked for a name it does not contain."""

    kind = "entry"

    def __init__(self, name: str, available: list[str] | None = None) -> None:
        self.name = name
        self.available = sorted(available or [])
        listing = ", ".join(self.available) or "none"
        super().__init__(f"Unknown {self.kind} {name!r}. Available: {listing}")


class UnknownHandlerError(UnknownNameError):
    """The handler chain names a handler that is not registered."""

    kind = "handler"


class UnknownReporterError(UnknownNameError):
    """The effective configuration names a reporter that is not registered."""

    kind = "reporter"


class UnknownTaskError(UnknownNameError):
    """A work item references a task that cannot be resolved."""

    kind = "task"


class MalformedHandlerSpecError(BackgroundError, ValueError):
    """A handler chain entry could not be parsed."""


class HandlerError(BackgroundError):
    """A handler could not accept a capture for a reason of its own."""


class HandlerTimeout(HandlerError, TimeoutError):
    """A blocking handler step exceeded its time limit."""

    def __init__(self, operation: str, timeout: float) -> None:
        self.operation = operation
        self.timeout = timeout
        super().__init__(f"Operation {operation!r} timed out after {timeout}s")


class CaptureError(BackgroundError, ValueError):
    """A capture could not be built because part of it is not serializable."""


class CaptureDecodeError(BackgroundError):
    """A persisted or transported capture payload could not be decoded."""
