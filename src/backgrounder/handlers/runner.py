"""Hands the capture to a separate ``backgrounder execute`` process.

The capture travels as URL-safe base64 text on the child's command line.
The child is started in its own session and never waited for; only a
failure to start it counts as a handler failure.  Starting runs under a
timeout; a spawn that outlives it is abandoned, not cancelled, so a child
that starts late runs the work alongside the fallback handler.  The
receiving end is the ``execute`` CLI command (:func:`execute_payload`).
"""

from __future__ import annotations

import logging
import subprocess
import sys
from typing import Any, Callable, Mapping, Sequence

from backgrounder.capture.models import Capture
from backgrounder.capture.serializer import decode, encode
from backgrounder.capture.tasks import TaskRegistry, default_tasks
from backgrounder.core.timeout import call_with_timeout
from backgrounder.handlers.base import Handler

logger = logging.getLogger(__name__)


def default_command() -> list[str]:
    return [sys.executable, "-m", "backgrounder"]


def build_command(
    payload: str,
    *,
    imports: Sequence[str] = (),
    command: Sequence[str] | None = None,
) -> list[str]:
    """Return the argv that executes *payload* out of process."""
    argv = list(command or default_command())
    argv.append("execute")
    for module in imports:
        argv.extend(["--import", module])
    argv.append(payload)
    return argv


class RunnerHandler(Handler):
    """Spawns an external runner process.

    Options:

    timeout:: seconds allowed for starting the process.
    imports:: modules the child imports before executing, so that tasks
              registered under custom names are known there.
    command:: base command replacing ``python -m backgrounder``.
    """

    name = "runner"
    description = "Execute the task in a spawned `backgrounder execute` process"

    def __init__(
        self,
        *,
        timeout: float = 5.0,
        imports: Sequence[str] = (),
        popen: Callable[..., Any] = subprocess.Popen,
    ) -> None:
        self._timeout = timeout
        self._imports = list(imports)
        self._popen = popen

    def handle(self, capture: Capture, options: Mapping[str, Any]) -> None:
        imports = [*self._imports, *options.get("imports", [])]
        argv = build_command(encode(capture), imports=imports, command=options.get("command"))
        timeout = options.get("timeout", self._timeout)

        process = call_with_timeout(
            self._popen,
            argv,
            timeout=timeout,
            operation="runner spawn",
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
            close_fds=True,
        )
        logger.info("Started runner pid %s for %s", getattr(process, "pid", "?"), capture.task)


def execute_payload(payload: str, tasks: TaskRegistry | None = None) -> Any:
    """Decode a runner payload and execute it in this process."""
    capture = decode(payload)
    logger.info(
        "Executing %s (capture %s) with %d argument(s) and values %s",
        capture.task,
        capture.id,
        len(capture.work.args),
        sorted(capture.values),
    )
    result = (tasks if tasks is not None else default_tasks).execute(capture)
    logger.info("Finished %s (capture %s)", capture.task, capture.id)
    return result
