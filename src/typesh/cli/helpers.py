"""CLI helper utilities shared across commands."""

import sys
from typing import Optional, Tuple

import click

from ..context import TypeshContext
from ..shell import Shell
from ..streams.registry import TypeRegistry, TypesFileError


def load_registry_or_exit(ctx: TypeshContext) -> TypeRegistry:
    """Load the effective registry, exiting with status 1 on a bad types file.

    Raises:
        SystemExit: If the types file cannot be loaded
    """
    try:
        return ctx.registry()
    except TypesFileError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def make_shell(ctx: TypeshContext, pipefail: bool = False) -> Shell:
    return Shell(
        registry=load_registry_or_exit(ctx),
        pipefail=pipefail,
        home_dir=ctx.home,
    )


def read_source(script: Optional[str], command: Optional[str]) -> Tuple[str, bool]:
    """Source text to run and whether it is a single command line.

    ``-c`` wins over a script path; a missing path or ``-`` reads stdin.

    Raises:
        SystemExit: If both are given or the script cannot be read
    """
    if command is not None:
        if script is not None:
            click.echo("Error: give either SCRIPT or -c, not both", err=True)
            sys.exit(1)
        return command, True

    if script is None or script == "-":
        return sys.stdin.read(), False

    try:
        with open(script, encoding="utf-8") as f:
            return f.read(), False
    except OSError as e:
        click.echo(f"Error: cannot read {script}: {e.strerror or e}", err=True)
        sys.exit(1)
