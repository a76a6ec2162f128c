"""Types command - list declared program signatures."""

import click

from ...context import pass_context
from ..helpers import load_registry_or_exit


@click.command()
@pass_context
def types(ctx):
    """List the effective type registry.

    Programs not listed have the signature [opaque] -> [opaque].
    """
    registry = load_registry_or_exit(ctx)
    if ctx.types_path is not None:
        click.echo(f"# types file: {ctx.types_path}")
    for name, signature in registry.items():
        click.echo(f"{name}: {signature}")
