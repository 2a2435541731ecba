"""backgrounder queue command."""

from __future__ import annotations

import json
from pathlib import Path

import click

from backgrounder.capture.serializer import preview_capture
from backgrounder.capture.store import DiskQueue
from backgrounder.core.config import load_config
from backgrounder.core.errors import CaptureDecodeError
from backgrounder.core.output import print_queue


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Print the listing as JSON")
@click.option(
    "--directory",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Queue directory (default: configured disk.directory)",
)
def queue(as_json: bool, directory: Path | None):
    """List persisted captures in the order recover would replay them.

    Argument previews are truncated and values with sensitive-looking
    names (passwords, tokens, keys) are redacted.
    """
    disk_queue = DiskQueue.from_config(load_config(Path.cwd()))
    if directory is not None:
        disk_queue = disk_queue.with_directory(directory)

    entries = []
    for path in disk_queue.paths():
        try:
            capture = disk_queue.read(path)
        except FileNotFoundError:
            continue
        except CaptureDecodeError as exc:
            entries.append({"file": path.name, "error": str(exc)})
            continue
        entries.append({"file": path.name, **preview_capture(capture)})

    if as_json:
        click.echo(json.dumps(entries, indent=2))
        return

    print_queue(entries, str(disk_queue.directory))
