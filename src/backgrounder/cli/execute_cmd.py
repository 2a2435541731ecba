"""backgrounder execute command (receiving end of the runner handler)."""

from __future__ import annotations

import logging
import sys

import click

from backgrounder.capture.tasks import import_task_modules
from backgrounder.core.errors import BackgroundError
from backgrounder.core.output import error_console
from backgrounder.handlers.runner import execute_payload

logger = logging.getLogger(__name__)


@click.command()
@click.argument("payload")
@click.option(
    "--import",
    "imports",
    multiple=True,
    metavar="MODULE",
    help="Import MODULE first so its tasks are registered (repeatable)",
)
def execute(payload: str, imports: tuple[str, ...]):
    """Execute an encoded capture in this process.

    PAYLOAD is the text produced by the runner handler, or - to read it
    from stdin.  Exits 1 if the capture cannot be decoded or the task fails.
    """
    if payload == "-":
        payload = sys.stdin.read().strip()

    try:
        import_task_modules(imports)
    except ImportError as exc:
        error_console.print(f"  Cannot import task module: {exc}", markup=False, highlight=False)
        sys.exit(1)

    try:
        execute_payload(payload)
    except BackgroundError as exc:
        error_console.print(f"  {exc}", markup=False, highlight=False)
        sys.exit(1)
    except Exception as exc:
        logger.exception("Background task failed")
        error_console.print(f"  Task failed: {type(exc).__name__}: {exc}", markup=False, highlight=False)
        sys.exit(1)
