"""Check command - parse and type check without running anything."""

import sys

import click

from ...context import pass_context
from ...diagnostics import render_all
from ...errors import EXIT_BAD_SYNTAX
from ..helpers import make_shell, read_source


@click.command()
@click.argument("script", required=False)
@click.option("-c", "--command", "command", help="Check a single command line")
@pass_context
def check(ctx, script, command):
    """Report syntax, redirect and type errors.

    Exits 0 when everything checks out, 2 otherwise.

    Examples:
        typesh check -c 'ps | get name'
        typesh check build.tsh
    """
    source, single = read_source(script, command)
    shell = make_shell(ctx)
    if single:
        diagnostics = shell.check_command(source)
    else:
        diagnostics = shell.check_script(source)

    if diagnostics:
        click.echo(render_all(source, diagnostics), err=True)
        sys.exit(EXIT_BAD_SYNTAX)
