"""Collects reported errors for assertions in tests."""

from __future__ import annotations

from backgrounder.reporters.base import Reporter


class TestReporter(Reporter):
    __test__ = False  # not a pytest test class

    name = "test"
    description = "Store reported errors for inspection"

    def __init__(self) -> None:
        self.errors: list[BaseException] = []

    def report(self, error: BaseException) -> None:
        self.errors.append(error)

    @property
    def last_error(self) -> BaseException | None:
        return self.errors[-1] if self.errors else None

    def reset(self) -> None:
        self.errors.clear()
