"""backgrounder recover command."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from backgrounder.capture.tasks import import_task_modules
from backgrounder.core.config import load_config
from backgrounder.core.errors import UnknownNameError
from backgrounder.core.output import error_console, print_recovery_report
from backgrounder.dispatch.context import create_context
from backgrounder.dispatch.dispatcher import Dispatcher


@click.command()
@click.option("--handler", "handler_name", default="in_process", show_default=True, help="Handler to replay through")
@click.option("--reporter", default=None, help="Reporter for replay failures (default: configured reporter)")
@click.option(
    "--directory",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Queue directory (default: configured disk.directory)",
)
@click.option(
    "--import",
    "imports",
    multiple=True,
    metavar="MODULE",
    help="Import MODULE first so its tasks are registered (repeatable, adds to recover.imports)",
)
def recover(handler_name: str, reporter: str | None, directory: Path | None, imports: tuple[str, ...]):
    """Replay persisted captures, oldest first.

    Each capture that the handler accepts is removed from the queue; the
    rest stay for the next run.  Exits 1 if anything failed or was corrupt.
    """
    settings = load_config(Path.cwd())
    try:
        import_task_modules([*settings.recover.imports, *imports])
    except ImportError as exc:
        error_console.print(f"  Cannot import task module: {exc}", markup=False, highlight=False)
        sys.exit(1)

    context = create_context(settings=settings)
    try:
        report = Dispatcher(context).recover(handler_name, reporter=reporter, directory=directory)
    except UnknownNameError as exc:
        raise click.ClickException(str(exc)) from exc

    print_recovery_report(report)
    if not report.ok:
        sys.exit(1)
