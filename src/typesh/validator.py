"""Semantic validation: AST command -> execution plan.

Two checks run over a parsed command:

1. Redirect position. Only the first stage may read from a file and only
   the last stage may write to one. Every violation in the command is
   reported in one pass.
2. Stream types. Each adjacent (producer, consumer) pair must connect
   according to ``can_connect``. A pair is only compared when neither stage
   has a misplaced redirect, since such a redirect muddles the stage's role.

Redirect files are never type checked; their contents are not known until
run time.
"""

from __future__ import annotations

import logging
from typing import List, Set, Tuple

from .diagnostics import Diagnostic, DiagnosticKind
from .errors import ValidationError
from .plan import (
    ExecutionPlan,
    FileSink,
    FileSource,
    NextStage,
    PipelineStage,
    PreviousStage,
    Terminal,
)
from .streams.registry import TypeRegistry
from .streams.types import can_connect
from .syntax.ast import Command, Invocation, Script

logger = logging.getLogger(__name__)

READ_REDIRECT_MESSAGE = (
    "cannot redirect input unless it's from the first command in a pipeline"
)
WRITE_REDIRECT_MESSAGE = (
    "cannot redirect output unless it's from the last command in a pipeline"
)


class Validator:
    """Validate commands against a type registry."""

    def __init__(self, registry: TypeRegistry):
        self.registry = registry

    def diagnose(self, command: Command) -> List[Diagnostic]:
        """All diagnostics for ``command``, in stage order."""
        diagnostics, misplaced = self._redirect_diagnostics(command)
        diagnostics.extend(self._type_diagnostics(command, misplaced))
        return diagnostics

    def validate(self, command: Command) -> ExecutionPlan:
        """Build the execution plan for ``command``.

        Raises:
            ValidationError: Carrying every diagnostic found.
        """
        diagnostics = self.diagnose(command)
        if diagnostics:
            raise ValidationError(diagnostics)
        plan = self._build_plan(command)
        logger.debug("validated plan: %s", plan.describe())
        return plan

    def validate_script(self, script: Script) -> List[ExecutionPlan]:
        """Validate every command, reporting all diagnostics together.

        Raises:
            ValidationError: If any command has diagnostics.
        """
        diagnostics: List[Diagnostic] = []
        for command in script:
            diagnostics.extend(self.diagnose(command))
        if diagnostics:
            raise ValidationError(diagnostics)
        return [self._build_plan(command) for command in script]

    def _redirect_diagnostics(self, command: Command) -> Tuple[List[Diagnostic], Set[int]]:
        diagnostics: List[Diagnostic] = []
        misplaced: Set[int] = set()
        last = len(command) - 1

        for i, invocation in enumerate(command):
            if invocation.read_redirect is not None and i != 0:
                misplaced.add(i)
                diagnostics.append(
                    Diagnostic(
                        DiagnosticKind.REDIRECT_POSITION,
                        READ_REDIRECT_MESSAGE,
                        invocation.read_redirect.span,
                        stage_index=i,
                    )
                )
            if invocation.write_redirect is not None and i != last:
                misplaced.add(i)
                diagnostics.append(
                    Diagnostic(
                        DiagnosticKind.REDIRECT_POSITION,
                        WRITE_REDIRECT_MESSAGE,
                        invocation.write_redirect.span,
                        stage_index=i,
                    )
                )
        return diagnostics, misplaced

    def _type_diagnostics(self, command: Command, misplaced: Set[int]) -> List[Diagnostic]:
        diagnostics: List[Diagnostic] = []
        stages = command.stages
        for i in range(len(stages) - 1):
            if i in misplaced or i + 1 in misplaced:
                continue
            producer, consumer = stages[i], stages[i + 1]
            produced = self.registry.lookup(producer.name).output
            expected = self.registry.lookup(consumer.name).input
            if can_connect(produced, expected):
                continue
            diagnostics.append(
                Diagnostic(
                    DiagnosticKind.TYPE_MISMATCH,
                    type_mismatch_message(producer, consumer, str(produced), str(expected)),
                    producer.span.merge(consumer.span),
                    stage_index=i + 1,
                    details={
                        "producer": producer.name,
                        "consumer": consumer.name,
                        "produced": str(produced),
                        "expected": str(expected),
                    },
                )
            )
        return diagnostics

    def _build_plan(self, command: Command) -> ExecutionPlan:
        last = len(command) - 1
        stages = []
        for i, invocation in enumerate(command):
            signature = self.registry.lookup(invocation.name)

            if i > 0:
                read_source = PreviousStage()
            elif invocation.read_redirect is not None:
                read_source = FileSource(path=invocation.read_redirect.path.value)
            else:
                read_source = Terminal()

            if i < last:
                write_sink = NextStage()
            elif invocation.write_redirect is not None:
                write_sink = FileSink(
                    path=invocation.write_redirect.path.value,
                    mode=invocation.write_redirect.mode,
                )
            else:
                write_sink = Terminal()

            stages.append(
                PipelineStage(
                    index=i,
                    program=invocation.name,
                    args=[term.value for term in invocation.args],
                    read_source=read_source,
                    write_sink=write_sink,
                    resolved_input=signature.input,
                    resolved_output=signature.output,
                )
            )
        return ExecutionPlan(stages=stages)


def type_mismatch_message(
    producer: Invocation, consumer: Invocation, produced: str, expected: str
) -> str:
    return (
        f"type mismatch: cannot connect {produced} (produced by {producer.name}) "
        f"to {expected} (expected by {consumer.name})"
    )


def validate(command: Command, registry: TypeRegistry) -> ExecutionPlan:
    """Shorthand for ``Validator(registry).validate(command)``."""
    return Validator(registry).validate(command)


__all__ = [
    "READ_REDIRECT_MESSAGE",
    "Validator",
    "WRITE_REDIRECT_MESSAGE",
    "type_mismatch_message",
    "validate",
]
