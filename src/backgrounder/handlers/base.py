"""Base class for all background handlers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping

from backgrounder.capture.models import Capture


class Handler(ABC):
    """A backend that accepts captures.

    ``handle`` returning normally means the capture was accepted; raising
    means it was not and the dispatcher moves on to the next handler.
    Acceptance is about delivery: for handlers that run the work elsewhere,
    failures of the work itself are not observed.
    """

    name: str = ""
    description: str = ""

    @abstractmethod
    def handle(self, capture: Capture, options: Mapping[str, Any]) -> None:
        """Accept *capture* or raise."""
        ...

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"
