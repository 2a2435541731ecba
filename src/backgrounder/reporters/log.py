"""Reports errors through the standard logging system."""

from __future__ import annotations

import logging

from backgrounder.reporters.base import Reporter


class LoggingReporter(Reporter):
    name = "log"
    description = "Log the error with its traceback"

    def __init__(self, logger_name: str = "backgrounder.errors") -> None:
        self._logger = logging.getLogger(logger_name)

    def report(self, error: BaseException) -> None:
        self._logger.error(
            "Background task error: %s: %s",
            type(error).__qualname__,
            error,
            exc_info=(type(error), error, error.__traceback__),
        )
