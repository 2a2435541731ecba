"""Recording handler for test suites.

Instead of running anything it keeps what it was given so tests can
inspect it, and it can be told to fail exactly once to exercise fallback
chains.
"""

from __future__ import annotations

from typing import Any, Mapping

from backgrounder.capture.models import Capture
from backgrounder.core.errors import HandlerError
from backgrounder.handlers.base import Handler


class TestHandler(Handler):
    __test__ = False  # not a pytest test class

    name = "test"
    description = "Record the task for inspection instead of running it"

    def __init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        self.executed = False
        self.fail_next_time = False
        self.capture: Capture | None = None
        self.options: dict[str, Any] | None = None
        self.captures: list[Capture] = []

    def handle(self, capture: Capture, options: Mapping[str, Any]) -> None:
        self.executed = True
        if self.fail_next_time:
            self.fail_next_time = False
            raise HandlerError("TestHandler.handle: failed on purpose")

        self.capture = capture
        self.options = dict(options)
        self.captures.append(capture)

    @property
    def owner(self) -> Any:
        """The owner of the last accepted capture."""
        return self.capture.owner if self.capture else None

    @property
    def values(self) -> dict[str, Any]:
        """The named values of the last accepted capture."""
        return dict(self.capture.values) if self.capture else {}
