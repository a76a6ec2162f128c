"""Span-anchored diagnostics and the pointer renderer."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from .errors import (
    RedirectPositionError,
    ShellSyntaxError,
    TypeMismatchError,
    TypeshError,
)
from .syntax.spans import Span

PROGRAM_NAME = "typesh"


class DiagnosticKind(Enum):
    """What kind of problem a diagnostic reports."""

    SYNTAX = "syntax"
    REDIRECT_POSITION = "redirect-position"
    TYPE_MISMATCH = "type-mismatch"


@dataclass(frozen=True)
class Diagnostic:
    """A single problem found before execution."""

    kind: DiagnosticKind
    message: str
    span: Span
    stage_index: Optional[int] = None
    details: Dict[str, str] = field(default_factory=dict, compare=False)

    def to_error(self) -> TypeshError:
        """The exception type matching this diagnostic's kind."""
        if self.kind is DiagnosticKind.REDIRECT_POSITION:
            return RedirectPositionError(self.message, self.span, self.stage_index)
        if self.kind is DiagnosticKind.TYPE_MISMATCH:
            return TypeMismatchError(
                self.message,
                self.span,
                producer=self.details.get("producer", ""),
                consumer=self.details.get("consumer", ""),
                produced=self.details.get("produced", ""),
                expected=self.details.get("expected", ""),
            )
        return ShellSyntaxError(self.message, self.span)

    @classmethod
    def from_syntax_error(cls, error: ShellSyntaxError) -> "Diagnostic":
        return cls(DiagnosticKind.SYNTAX, error.message, error.span)

    def __str__(self) -> str:
        return f"{self.span.line}:{self.span.column}: {self.message}"


def render(source: str, message: str, span: Optional[Span] = None) -> str:
    """Format a message with a pointer at ``span`` in ``source``.

    Example::

        typesh: cannot redirect output unless it's from the last command in a pipeline
         --> 1:11
          |
        1 | echo test >file | cat
          |           ^^^^^
    """
    summary = f"{PROGRAM_NAME}: {message}"
    if span is None:
        return summary

    lines = source.split("\n")
    line_index = min(span.line - 1, len(lines) - 1)
    source_line = lines[line_index].rstrip("\r") if lines else ""

    gutter = " " * len(str(span.line))
    start_col = span.column - 1
    if span.end_line == span.line:
        width = span.end - span.start
    else:
        # Multi-line spans are underlined to the end of their first line.
        width = len(source_line) - start_col
    width = max(width, 1)

    return "\n".join(
        [
            summary,
            f"{gutter}--> {span.line}:{span.column}",
            f"{gutter} |",
            f"{span.line} | {source_line}",
            f"{gutter} | {' ' * start_col}{'^' * width}",
        ]
    )


def render_diagnostic(source: str, diagnostic: Diagnostic) -> str:
    return render(source, diagnostic.message, diagnostic.span)


def render_all(source: str, diagnostics: List[Diagnostic]) -> str:
    """Render diagnostics in source order, separated by blank lines."""
    ordered = sorted(diagnostics, key=lambda d: (d.span.start, d.span.end))
    return "\n\n".join(render_diagnostic(source, d) for d in ordered)


__all__ = [
    "Diagnostic",
    "DiagnosticKind",
    "PROGRAM_NAME",
    "render",
    "render_all",
    "render_diagnostic",
]
