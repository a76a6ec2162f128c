"""Error taxonomy for typesh.

Every error carries the exit status the shell reports when it surfaces at
the top level, so the CLI can map any failure onto a process exit code
without a lookup table.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from .diagnostics import Diagnostic
    from .syntax.spans import Span


# Exit codes follow the usual shell conventions.
EXIT_FAILURE = 1
EXIT_BAD_SYNTAX = 2
EXIT_COULD_NOT_EXECUTE = 126
EXIT_COMMAND_NOT_FOUND = 127


class TypeshError(Exception):
    """Base class for all shell errors."""

    exit_code: int = EXIT_FAILURE


class ShellSyntaxError(TypeshError):
    """Source text does not match the pipeline grammar."""

    exit_code = EXIT_BAD_SYNTAX

    def __init__(self, message: str, span: "Span"):
        super().__init__(message)
        self.message = message
        self.span = span


class RedirectPositionError(TypeshError):
    """A redirect appears on a stage that cannot own it."""

    exit_code = EXIT_BAD_SYNTAX

    def __init__(self, message: str, span: "Span", stage_index: int):
        super().__init__(message)
        self.message = message
        self.span = span
        self.stage_index = stage_index


class TypeMismatchError(TypeshError):
    """Adjacent stages declare incompatible stream types."""

    exit_code = EXIT_BAD_SYNTAX

    def __init__(
        self,
        message: str,
        span: "Span",
        producer: str,
        consumer: str,
        produced: str,
        expected: str,
    ):
        super().__init__(message)
        self.message = message
        self.span = span
        self.producer = producer
        self.consumer = consumer
        self.produced = produced
        self.expected = expected


class ValidationError(TypeshError):
    """One or more diagnostics were raised while validating a command."""

    exit_code = EXIT_BAD_SYNTAX

    def __init__(self, diagnostics: List["Diagnostic"]):
        if not diagnostics:
            raise ValueError("ValidationError requires at least one diagnostic")
        super().__init__("; ".join(d.message for d in diagnostics))
        self.diagnostics = diagnostics


class RuntimeIOError(TypeshError):
    """A redirect file could not be opened before spawning."""

    exit_code = EXIT_FAILURE

    def __init__(self, stage_index: int, path: str, reason: str):
        super().__init__(f"{path}: {reason}")
        self.stage_index = stage_index
        self.path = path
        self.reason = reason


class SpawnError(TypeshError):
    """A program could not be found or executed."""

    def __init__(
        self,
        program: str,
        reason: str,
        exit_code: int = EXIT_COULD_NOT_EXECUTE,
        stage_index: Optional[int] = None,
    ):
        super().__init__(f"{program}: {reason}")
        self.program = program
        self.reason = reason
        self.exit_code = exit_code
        self.stage_index = stage_index
        # Filled in by the engine once the partial pipeline is torn down.
        self.result = None


__all__ = [
    "EXIT_BAD_SYNTAX",
    "EXIT_COMMAND_NOT_FOUND",
    "EXIT_COULD_NOT_EXECUTE",
    "EXIT_FAILURE",
    "RedirectPositionError",
    "RuntimeIOError",
    "ShellSyntaxError",
    "SpawnError",
    "TypeMismatchError",
    "TypeshError",
    "ValidationError",
]
