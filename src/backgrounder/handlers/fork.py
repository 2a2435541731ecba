"""Runs the capture in a detached child process.

The parent double-forks: the intermediate child starts a new session, forks
the worker and exits at once, so the parent only waits for that brief
intermediate step and the worker is never left as a zombie.  Whatever
happens inside the worker is not reported back.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Mapping

from backgrounder.capture.models import Capture
from backgrounder.capture.tasks import TaskRegistry
from backgrounder.core.errors import HandlerError
from backgrounder.handlers.base import Handler

logger = logging.getLogger(__name__)


class ForkHandler(Handler):
    name = "fork"
    description = "Execute the task in a detached forked process"

    def __init__(self, tasks: TaskRegistry) -> None:
        self._tasks = tasks

    def handle(self, capture: Capture, options: Mapping[str, Any]) -> None:
        if not hasattr(os, "fork"):
            raise HandlerError("The fork handler needs os.fork, which this platform lacks")

        pid = os.fork()
        if pid == 0:
            self._detach_and_run(capture)

        _, status = os.waitpid(pid, 0)
        if os.WIFEXITED(status) and os.WEXITSTATUS(status) == 0:
            logger.debug("Forked worker for capture %s (%s)", capture.id, capture.task)
            return
        raise HandlerError(f"Could not start a worker process for capture {capture.id}")

    def _detach_and_run(self, capture: Capture) -> None:
        # Intermediate child: never returns into the caller's stack.
        code = 1
        try:
            os.setsid()
            if os.fork() != 0:
                code = 0
            else:
                code = self._run_worker(capture)
        finally:
            os._exit(code)

    def _run_worker(self, capture: Capture) -> int:
        try:
            self._tasks.execute(capture)
        except Exception:
            logger.exception("Forked task %s failed (capture %s)", capture.task, capture.id)
            return 1
        return 0
