"""backgrounder config command."""

from __future__ import annotations

from pathlib import Path

import click

from backgrounder.core.errors import MalformedHandlerSpecError
from backgrounder.core.output import print_effective_config
from backgrounder.dispatch.context import create_context


@click.command()
@click.argument("name", required=False)
@click.option("--env", "environment", default=None, help="Resolve for this environment instead of the current one")
@click.option("--handler", "handlers", multiple=True, help="Call-site handler (repeatable, in chain order)")
@click.option("--reporter", default=None, help="Call-site reporter")
def config(name: str | None, environment: str | None, handlers: tuple[str, ...], reporter: str | None):
    """Show the handler chain and reporter a call would use.

    NAME is a configuration from backgrounder.toml.  --handler and
    --reporter act like options passed at the call site.
    """
    context = create_context(Path.cwd(), environment=environment)

    try:
        effective = context.resolver.resolve(
            {"handler": list(handlers) or None, "reporter": reporter},
            name,
        )
    except MalformedHandlerSpecError as exc:
        raise click.ClickException(str(exc)) from exc

    print_effective_config(effective, name=name, environment=context.environment)
