"""Shell facade: parse, validate and execute command lines and scripts.

Errors are rendered to stderr here and converted into exit statuses, so
callers (the CLI, tests, embedding code) only deal with ``ExitStatus``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import click

from .diagnostics import Diagnostic, render, render_all
from .engine import ExitStatus, PipelineExecutor, Session
from .errors import RuntimeIOError, ShellSyntaxError, SpawnError, ValidationError
from .plan import ExecutionPlan
from .streams.registry import TypeRegistry, default_registry
from .syntax import parse_command, parse_script
from .validator import Validator

logger = logging.getLogger(__name__)


def is_blank(source: str) -> bool:
    """True for input with nothing but whitespace and comments."""
    return all(
        not line.strip() or line.strip().startswith("#")
        for line in source.splitlines()
    )


class Shell:
    """Parses, validates and runs pipelines against one session."""

    def __init__(
        self,
        registry: Optional[TypeRegistry] = None,
        session: Optional[Session] = None,
        search_path: Optional[str] = None,
        pipefail: bool = False,
        home_dir: Optional[Path] = None,
    ):
        self.registry = registry if registry is not None else default_registry()
        self.session = session or Session.here()
        self.validator = Validator(self.registry)
        self.executor = PipelineExecutor(
            self.session,
            search_path=search_path,
            pipefail=pipefail,
            home_dir=home_dir,
        )

    def plan(self, source: str) -> ExecutionPlan:
        """Parse and validate one command line without running it.

        Raises:
            ShellSyntaxError: If the source does not parse.
            ValidationError: If the pipeline is not well formed.
        """
        return self.validator.validate(parse_command(source))

    def check_command(self, source: str) -> List[Diagnostic]:
        """Diagnostics for one command line (empty when it is valid)."""
        if is_blank(source):
            return []
        try:
            command = parse_command(source)
        except ShellSyntaxError as e:
            return [Diagnostic.from_syntax_error(e)]
        return self.validator.diagnose(command)

    def check_script(self, source: str) -> List[Diagnostic]:
        """Diagnostics for a whole script (empty when it is valid)."""
        try:
            script = parse_script(source)
        except ShellSyntaxError as e:
            return [Diagnostic.from_syntax_error(e)]
        diagnostics: List[Diagnostic] = []
        for command in script:
            diagnostics.extend(self.validator.diagnose(command))
        return diagnostics

    def run_command(self, source: str) -> ExitStatus:
        """Run one command line and return its status."""
        if is_blank(source):
            return ExitStatus.SUCCESS
        try:
            plan = self.plan(source)
        except ShellSyntaxError as e:
            self._report(render(source, e.message, e.span))
            return ExitStatus.BAD_SYNTAX
        except ValidationError as e:
            self._report(render_all(source, e.diagnostics))
            return ExitStatus.BAD_SYNTAX
        return self.execute(plan)

    def run_script(self, source: str) -> ExitStatus:
        """Run a script: every command is validated before any of them runs.

        Runtime failures of one command do not stop the script; its status
        is the status of the last command.
        """
        try:
            plans = self.validator.validate_script(parse_script(source))
        except ShellSyntaxError as e:
            self._report(render(source, e.message, e.span))
            return ExitStatus.BAD_SYNTAX
        except ValidationError as e:
            self._report(render_all(source, e.diagnostics))
            return ExitStatus.BAD_SYNTAX

        status = ExitStatus.SUCCESS
        for plan in plans:
            status = self.execute(plan)
        return status

    def execute(self, plan: ExecutionPlan) -> ExitStatus:
        """Run a validated plan, reporting runtime errors."""
        try:
            result = self.executor.execute(plan)
        except RuntimeIOError as e:
            self._report(render("", f"{e.path}: {e.reason}"))
            return ExitStatus(code=e.exit_code)
        except SpawnError as e:
            self._report(render("", f"{e.program}: {e.reason}"))
            return ExitStatus(code=e.exit_code)

        logger.debug(
            "pipeline finished with %s (completion order %s)",
            result.status,
            result.completion_order,
        )
        return result.status

    @staticmethod
    def _report(text: str) -> None:
        click.echo(text, err=True)


__all__ = ["Shell", "is_blank"]
