"""Runs the capture right away in the calling thread."""

from __future__ import annotations

from typing import Any, Mapping

from backgrounder.capture.models import Capture
from backgrounder.capture.tasks import TaskRegistry
from backgrounder.handlers.base import Handler


class InProcessHandler(Handler):
    """Executes the task synchronously.  Delivery and execution are one step,
    so any exception from the task is a handler failure."""

    name = "in_process"
    description = "Execute the task synchronously in the calling thread"

    def __init__(self, tasks: TaskRegistry) -> None:
        self._tasks = tasks

    def handle(self, capture: Capture, options: Mapping[str, Any]) -> None:
        self._tasks.execute(capture)
