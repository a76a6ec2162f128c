"""Source spans for diagnostics."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Span:
    """Half-open range ``[start, end)`` into the source text.

    ``start``/``end`` are string offsets; ``line``/``column`` are 1-based and
    describe ``start``, ``end_line``/``end_column`` describe ``end``.
    Spans never influence execution.
    """

    start: int
    end: int
    line: int
    column: int
    end_line: int
    end_column: int

    @classmethod
    def from_offsets(cls, source: str, start: int, end: int) -> "Span":
        """Build a span from offsets, deriving line and column."""
        line, column = _line_col(source, start)
        end_line, end_column = _line_col(source, end)
        return cls(start, end, line, column, end_line, end_column)

    @classmethod
    def from_token(cls, token) -> "Span":
        """Build a span from a Lark token."""
        return cls(
            token.start_pos,
            token.end_pos,
            token.line,
            token.column,
            token.end_line,
            token.end_column,
        )

    @classmethod
    def from_meta(cls, meta) -> "Span":
        """Build a span from a Lark tree's ``meta`` (propagate_positions)."""
        return cls(
            meta.start_pos,
            meta.end_pos,
            meta.line,
            meta.column,
            meta.end_line,
            meta.end_column,
        )

    def merge(self, other: "Span") -> "Span":
        """Smallest span covering both ``self`` and ``other``."""
        first = self if self.start <= other.start else other
        last = self if self.end >= other.end else other
        return Span(
            first.start,
            last.end,
            first.line,
            first.column,
            last.end_line,
            last.end_column,
        )

    def byte_range(self, source: str) -> Tuple[int, int]:
        """UTF-8 byte offsets of this span within ``source``."""
        start = len(source[: self.start].encode("utf-8"))
        return start, start + len(source[self.start : self.end].encode("utf-8"))

    def text(self, source: str) -> str:
        return source[self.start : self.end]

    def __len__(self) -> int:
        return self.end - self.start


def _line_col(source: str, offset: int) -> Tuple[int, int]:
    line = source.count("\n", 0, offset) + 1
    line_start = source.rfind("\n", 0, offset) + 1
    return line, offset - line_start + 1


__all__ = ["Span"]
