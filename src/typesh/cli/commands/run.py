"""Run command - execute a command line or a script."""

import sys

import click

from ...context import pass_context
from ..helpers import make_shell, read_source


@click.command()
@click.argument("script", required=False)
@click.option("-c", "--command", "command", help="Run a single command line")
@click.option(
    "--pipefail",
    is_flag=True,
    help="Exit with the first failing stage's status instead of the last stage's",
)
@pass_context
def run(ctx, script, command, pipefail):
    """Run a pipeline or a script of pipelines.

    Every command is parsed and type checked before anything runs. A
    script with any diagnostic runs nothing and exits with status 2.

    Examples:
        typesh run -c 'echo one two three'
        typesh run -c 'cat <in.txt | sort >out.txt'
        typesh run build.tsh
        echo 'ls | xargs cat' | typesh run
    """
    source, single = read_source(script, command)
    shell = make_shell(ctx, pipefail=pipefail)
    status = shell.run_command(source) if single else shell.run_script(source)
    sys.exit(status.returncode)
