"""Base class for error reporters."""

from __future__ import annotations

from abc import ABC, abstractmethod


class Reporter(ABC):
    """Sink for failures observed while dispatching or replaying captures."""

    name: str = ""
    description: str = ""

    @abstractmethod
    def report(self, error: BaseException) -> None:
        ...

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"
