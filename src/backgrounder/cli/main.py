"""Click CLI entry point for backgrounder."""

from __future__ import annotations

import click

from backgrounder._version import __version__
from backgrounder.core.output import configure_logging


@click.group()
@click.version_option(version=__version__, prog_name="backgrounder")
@click.option("-v", "--verbose", is_flag=True, help="Log every dispatch step to stderr")
def cli(verbose: bool):
    """backgrounder - run work in the background, with fallbacks.

    Inspect and replay the durable disk queue, check which handler chain a
    call would use, and execute captures handed over by the runner handler.
    """
    configure_logging(verbose)


# Import and register subcommands
from backgrounder.cli.recover_cmd import recover  # noqa: E402
from backgrounder.cli.queue_cmd import queue  # noqa: E402
from backgrounder.cli.execute_cmd import execute  # noqa: E402
from backgrounder.cli.config_cmd import config  # noqa: E402

cli.add_command(recover)
cli.add_command(queue)
cli.add_command(execute)
cli.add_command(config)


if __name__ == "__main__":
    cli()
