"""Explain command - show the execution plan for a command line."""

import sys

import click

from ...context import pass_context
from ...diagnostics import render, render_all
from ...errors import EXIT_BAD_SYNTAX, ShellSyntaxError, ValidationError
from ..helpers import make_shell


@click.command()
@click.option("-c", "--command", "command", required=True, help="Command line to explain")
@pass_context
def explain(ctx, command):
    """Print the validated execution plan as JSON.

    Example:
        typesh explain -c 'cat <in.txt | get name >>out.txt'
    """
    shell = make_shell(ctx)
    try:
        plan = shell.plan(command)
    except ShellSyntaxError as e:
        click.echo(render(command, e.message, e.span), err=True)
        sys.exit(EXIT_BAD_SYNTAX)
    except ValidationError as e:
        click.echo(render_all(command, e.diagnostics), err=True)
        sys.exit(EXIT_BAD_SYNTAX)

    click.echo(plan.model_dump_json(indent=2))
