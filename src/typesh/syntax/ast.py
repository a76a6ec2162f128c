"""Abstract syntax tree for pipeline commands.

Syntax:
    invocation ("|" invocation)*
    invocation := term (term | "<" term | (">" | ">>") term)*

Every node that can appear in a diagnostic embeds its ``Span``. Nodes are
frozen once built.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional, Tuple

from .spans import Span


class Quoting(Enum):
    """How a term was written in the source."""

    BARE = "bare"
    SINGLE = "single"
    DOUBLE = "double"


class WriteMode(str, Enum):
    """Write redirect behaviour: ``>`` truncates, ``>>`` appends."""

    TRUNCATE = "truncate"
    APPEND = "append"

    @property
    def operator(self) -> str:
        return ">>" if self is WriteMode.APPEND else ">"


@dataclass(frozen=True)
class Term:
    """A literal string value.

    Quote delimiters are stripped and no escape processing happens, so every
    quoting style collapses to ``value``.
    """

    value: str
    quoting: Quoting
    span: Span

    def to_source(self) -> str:
        """Re-serialize the term with its original quoting."""
        if self.quoting is Quoting.SINGLE:
            return f"'{self.value}'"
        if self.quoting is Quoting.DOUBLE:
            return f'"{self.value}"'
        return self.value

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ReadRedirect:
    """``< path``: stage input drawn from a file."""

    path: Term
    span: Span

    def to_source(self) -> str:
        return f"<{self.path.to_source()}"


@dataclass(frozen=True)
class WriteRedirect:
    """``> path`` / ``>> path``: stage output sent to a file."""

    path: Term
    mode: WriteMode
    span: Span

    def to_source(self) -> str:
        return f"{self.mode.operator}{self.path.to_source()}"


@dataclass(frozen=True)
class Invocation:
    """One program with its arguments and optional redirects."""

    program: Term
    args: Tuple[Term, ...]
    span: Span
    read_redirect: Optional[ReadRedirect] = None
    write_redirect: Optional[WriteRedirect] = None

    @property
    def name(self) -> str:
        return self.program.value

    @property
    def argv(self) -> Tuple[str, ...]:
        """Program name followed by the literal argument values."""
        return (self.program.value,) + tuple(t.value for t in self.args)

    def to_source(self) -> str:
        parts = [self.program.to_source()]
        parts.extend(t.to_source() for t in self.args)
        if self.read_redirect is not None:
            parts.append(self.read_redirect.to_source())
        if self.write_redirect is not None:
            parts.append(self.write_redirect.to_source())
        return " ".join(parts)


@dataclass(frozen=True)
class Command:
    """A full pipeline of one or more invocations."""

    stages: Tuple[Invocation, ...]
    span: Span

    def __post_init__(self):
        if not self.stages:
            raise ValueError("A command needs at least one invocation")

    def __len__(self) -> int:
        return len(self.stages)

    def __iter__(self) -> Iterator[Invocation]:
        return iter(self.stages)

    def to_source(self) -> str:
        return " | ".join(inv.to_source() for inv in self.stages)


@dataclass(frozen=True)
class Script:
    """Newline-separated commands."""

    commands: Tuple[Command, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.commands)

    def __iter__(self) -> Iterator[Command]:
        return iter(self.commands)


__all__ = [
    "Command",
    "Invocation",
    "Quoting",
    "ReadRedirect",
    "Script",
    "Term",
    "WriteMode",
    "WriteRedirect",
]
