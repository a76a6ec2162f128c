"""typesh CLI main entry point with global options."""

import logging

import click

from ..context import TypeshContext, resolve_paths


@click.group()
@click.option(
    "--home", type=click.Path(), help="typesh home directory (overrides $TYPESH_HOME)"
)
@click.option(
    "--types",
    "types_file",
    type=click.Path(),
    help="Types file (overrides $TYPESH_TYPES and <home>/types.json)",
)
@click.option("--verbose", "-v", is_flag=True, help="Log engine activity to stderr")
@click.pass_context
def cli(ctx, home, types_file, verbose):
    """typesh - a shell that type checks pipelines before running them."""
    ctx.ensure_object(TypeshContext)

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    # Resolve home and types file once
    paths = resolve_paths(home, types_file)
    ctx.obj.home = paths.home_dir
    ctx.obj.types_path = paths.types_path
    ctx.obj.verbose = verbose


# Register commands at module level so tests can import cli with commands attached
from .commands.check import check
from .commands.explain import explain
from .commands.run import run
from .commands.types import types

cli.add_command(run)
cli.add_command(check)
cli.add_command(explain)
cli.add_command(types)


def main():
    """Entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
