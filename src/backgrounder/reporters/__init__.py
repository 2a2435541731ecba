"""Error reporters: the registry and every built-in sink."""

from __future__ import annotations

from backgrounder.core.errors import UnknownReporterError
from backgrounder.core.registry import Registry
from backgrounder.reporters.base import Reporter
from backgrounder.reporters.console import SilentReporter, StderrReporter, StdoutReporter
from backgrounder.reporters.log import LoggingReporter
from backgrounder.reporters.notification import Notifier, NotificationReporter
from backgrounder.reporters.test import TestReporter


class ReporterRegistry(Registry[Reporter]):
    """Reporters by name."""

    error_class = UnknownReporterError

    def add(self, reporter: Reporter, *, replace: bool = False) -> Reporter:
        return self.register(reporter.name, reporter, replace=replace)


def build_reporter_registry(*, notifier: Notifier | None = None) -> ReporterRegistry:
    """Return a registry holding one instance of every built-in reporter."""
    registry = ReporterRegistry()
    registry.add(StdoutReporter())
    registry.add(StderrReporter())
    registry.add(SilentReporter())
    registry.add(LoggingReporter())
    registry.add(NotificationReporter(notifier))
    registry.add(TestReporter())
    return registry


__all__ = [
    "LoggingReporter",
    "NotificationReporter",
    "Notifier",
    "Reporter",
    "ReporterRegistry",
    "SilentReporter",
    "StderrReporter",
    "StdoutReporter",
    "TestReporter",
    "build_reporter_registry",
]
