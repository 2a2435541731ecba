"""Allow ``python -m backgrounder``."""

from backgrounder.cli.main import cli

cli()
