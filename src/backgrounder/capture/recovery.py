"""Recovery sweep: replay persisted captures against a handler.

Usage::

    from backgrounder import recover

    report = recover("in_process")        # default context, configured queue
    print(report.replayed, report.failed, report.corrupt)

Per file the sweep goes ``persisted -> replay attempt -> removed`` on
success, or stays ``persisted`` on failure.  Files are replayed oldest first;
a failure is reported and the sweep carries on with the next file.  A crash
between replay and delete means the file is replayed again next time
(at-least-once).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Mapping

from backgrounder.capture.store import DiskQueue
from backgrounder.core.errors import CaptureDecodeError

if TYPE_CHECKING:
    from backgrounder.handlers import HandlerRegistry
    from backgrounder.reporters import Reporter

logger = logging.getLogger(__name__)


@dataclass
class RecoveryReport:
    """What one sweep did, by file name, in processing order."""

    handler: str
    replayed: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    corrupt: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed and not self.corrupt

    @property
    def total(self) -> int:
        return len(self.replayed) + len(self.failed) + len(self.corrupt)


class RecoverySweep:
    """Replays a :class:`DiskQueue` through one handler."""

    def __init__(
        self,
        queue: DiskQueue,
        handlers: HandlerRegistry,
        reporter: Reporter,
    ) -> None:
        self._queue = queue
        self._handlers = handlers
        self._reporter = reporter

    def run(
        self,
        handler_name: str,
        options: Mapping[str, Any] | None = None,
    ) -> RecoveryReport:
        """Replay every queued capture through *handler_name*.

        Raises :class:`~backgrounder.core.errors.UnknownHandlerError` before
        touching any file when the handler does not exist.
        """
        handler = self._handlers.get(handler_name)
        options = dict(options or {})
        report = RecoveryReport(handler=handler_name)

        with self._queue.sweep_lock():
            paths = self._queue.paths()
            logger.info(
                "Recovering %d capture(s) from %s via %s",
                len(paths),
                self._queue.directory,
                handler_name,
            )
            for path in paths:
                self._replay_one(path, handler, options, report)

        logger.info(
            "Recovery via %s done: %d replayed, %d failed, %d corrupt",
            handler_name,
            len(report.replayed),
            len(report.failed),
            len(report.corrupt),
        )
        return report

    def _replay_one(self, path: Path, handler: Any, options: dict[str, Any], report: RecoveryReport) -> None:
        try:
            capture = self._queue.read(path)
        except FileNotFoundError:
            logger.debug("Capture file %s vanished before replay", path.name)
            return
        except CaptureDecodeError as exc:
            logger.warning("Skipping corrupt capture file %s: %s", path.name, exc)
            report.corrupt.append(path.name)
            self._reporter.report(exc)
            return

        try:
            handler.handle(capture, options)
        except Exception as exc:
            logger.warning("Replay of %s (%s) failed: %s", path.name, capture.task, exc)
            report.failed.append(path.name)
            self._reporter.report(exc)
            return

        self._queue.delete(path)
        report.replayed.append(path.name)
        logger.debug("Replayed and removed %s (%s)", path.name, capture.task)
