"""Rich terminal formatting for backgrounder output."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

if TYPE_CHECKING:
    from backgrounder.capture.recovery import RecoveryReport
    from backgrounder.dispatch.models import EffectiveConfig

console = Console()
error_console = Console(stderr=True)

LOGGER_NAME = "backgrounder"


def configure_logging(verbose: bool = False) -> logging.Logger:
    """Send backgrounder's log records to stderr through rich.

    Only the CLI calls this; as a library backgrounder installs no handlers.
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(console=error_console, show_path=False, markup=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    return logger


def print_recovery_report(report: RecoveryReport) -> None:
    """Print the outcome of a recovery sweep."""
    if report.total == 0:
        console.print("  [dim]Queue is empty, nothing to recover.[/dim]")
        return

    border = "green" if report.ok else "red"
    lines = [""]
    lines.append(f"  [green]{len(report.replayed)} replayed[/green]")
    if report.failed:
        lines.append(f"  [red]{len(report.failed)} failed[/red] (left in the queue)")
        for name in report.failed:
            lines.append(f"    [red]x[/red] {escape(name)}")
    if report.corrupt:
        lines.append(f"  [yellow]{len(report.corrupt)} corrupt[/yellow] (left for inspection)")
        for name in report.corrupt:
            lines.append(f"    [yellow]?[/yellow] {escape(name)}")
    lines.append("")

    console.print(Panel(
        "\n".join(lines),
        title=f"[bold]Recovery via {escape(report.handler)}[/bold]",
        border_style=border,
        padding=(0, 1),
    ))


def print_queue(entries: list[dict[str, Any]], directory: str) -> None:
    """Print queued captures, in replay order."""
    if not entries:
        console.print(f"  [dim]No queued captures in {escape(directory)}.[/dim]")
        return

    table = Table(title=f"Queued captures ({len(entries)}) in {escape(directory)}", title_justify="left")
    table.add_column("#", justify="right", style="dim")
    table.add_column("File", no_wrap=True)
    table.add_column("Task", style="bold", no_wrap=True)
    table.add_column("Created")
    table.add_column("Arguments", overflow="fold")

    for index, entry in enumerate(entries, start=1):
        if entry.get("error"):
            table.add_row(
                str(index),
                escape(entry["file"]),
                "[red]corrupt[/red]",
                "",
                escape(entry["error"]),
            )
            continue
        table.add_row(
            str(index),
            escape(entry["file"]),
            escape(entry["task"]),
            escape(entry["created_at"]),
            escape(f"args={entry['args']} values={entry['values']}"),
        )
    console.print(table)


def print_effective_config(config: EffectiveConfig, *, name: str | None, environment: str) -> None:
    """Print the handler chain and reporter a dispatch would use."""
    lines = [""]
    lines.append(f"  Environment:   {escape(environment)}")
    lines.append(f"  Configuration: {escape(name or '(default)')}")
    lines.append(f"  Reporter:      [bold]{escape(config.reporter)}[/bold]")
    lines.append("  Handlers:")
    for position, spec in enumerate(config.chain, start=1):
        options = f"  [dim]{escape(str(dict(spec.options)))}[/dim]" if spec.options else ""
        lines.append(f"    {position}. [bold]{escape(spec.name)}[/bold]{options}")
    lines.append("")

    console.print(Panel(
        "\n".join(lines),
        title="[bold]Effective background configuration[/bold]",
        border_style="blue",
        padding=(0, 1),
    ))
