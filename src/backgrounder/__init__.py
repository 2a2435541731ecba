"""backgrounder - run work in the background, falling back across handlers."""

from backgrounder._version import __version__
from backgrounder.capture.decorators import deferred
from backgrounder.capture.tasks import task
from backgrounder.dispatch.context import (
    create_context,
    get_default_context,
    reset_default_context,
    set_default_context,
)
from backgrounder.dispatch.dispatcher import background, dispatch, recover
from backgrounder.dispatch.models import Outcome

__all__ = [
    "__version__",
    "background",
    "create_context",
    "deferred",
    "dispatch",
    "get_default_context",
    "Outcome",
    "recover",
    "reset_default_context",
    "set_default_context",
    "task",
]
