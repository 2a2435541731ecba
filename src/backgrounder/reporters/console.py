"""Reporters that print to the terminal, or nowhere."""

from __future__ import annotations

from backgrounder.core.output import console, error_console
from backgrounder.reporters.base import Reporter


class StdoutReporter(Reporter):
    name = "stdout"
    description = "Print the error message on stdout"

    def report(self, error: BaseException) -> None:
        console.print(str(error), markup=False, highlight=False)


class StderrReporter(Reporter):
    name = "stderr"
    description = "Print the error message on stderr"

    def report(self, error: BaseException) -> None:
        error_console.print(str(error), markup=False, highlight=False)


class SilentReporter(Reporter):
    name = "silent"
    description = "Do not report errors at all"

    def report(self, error: BaseException) -> None:
        pass
