"""Stream types and the connection rule between pipeline stages."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, model_validator


class StreamKind(str, Enum):
    NONE = "none"
    OPAQUE = "opaque"
    TYPED = "typed"


class StreamType(BaseModel):
    """Static classification of a stage's input or output stream.

    - NONE: no input expected / no output produced
    - OPAQUE: uninterpreted bytes (default for unknown programs)
    - TYPED: structured records tagged with a format id (e.g. "objects")
    """

    model_config = ConfigDict(frozen=True)

    kind: StreamKind
    format_id: str | None = None

    @model_validator(mode="after")
    def _format_id_only_when_typed(self) -> "StreamType":
        if self.kind is StreamKind.TYPED and not self.format_id:
            raise ValueError("typed streams need a format id")
        if self.kind is not StreamKind.TYPED and self.format_id is not None:
            raise ValueError(f"{self.kind.value} streams take no format id")
        return self

    @classmethod
    def none(cls) -> "StreamType":
        return cls(kind=StreamKind.NONE)

    @classmethod
    def opaque(cls) -> "StreamType":
        return cls(kind=StreamKind.OPAQUE)

    @classmethod
    def typed(cls, format_id: str) -> "StreamType":
        return cls(kind=StreamKind.TYPED, format_id=format_id)

    @classmethod
    def parse(cls, text: str) -> "StreamType":
        """Parse ``none``, ``opaque`` (or ``[opaque]``), or a format id."""
        name = text.strip()
        if not name:
            raise ValueError("Stream type cannot be empty")
        if name in ("none", "[none]"):
            return cls.none()
        if name in ("opaque", "[opaque]"):
            return cls.opaque()
        return cls.typed(name)

    @property
    def is_opaque(self) -> bool:
        return self.kind is StreamKind.OPAQUE

    @property
    def is_none(self) -> bool:
        return self.kind is StreamKind.NONE

    def __str__(self) -> str:
        # Brackets mark "no declared type" so it never reads as a real tag.
        if self.kind is StreamKind.OPAQUE:
            return "[opaque]"
        if self.kind is StreamKind.NONE:
            return "none"
        return self.format_id


class TypeSignature(BaseModel):
    """Declared input and output stream types of a program."""

    model_config = ConfigDict(frozen=True)

    input: StreamType
    output: StreamType

    @classmethod
    def opaque(cls) -> "TypeSignature":
        return cls(input=StreamType.opaque(), output=StreamType.opaque())

    @classmethod
    def of(cls, input: str, output: str) -> "TypeSignature":
        """Shorthand: ``TypeSignature.of("objects", "opaque")``."""
        return cls(input=StreamType.parse(input), output=StreamType.parse(output))

    def __str__(self) -> str:
        return f"{self.input} -> {self.output}"


def can_connect(produced: StreamType, expected: StreamType) -> bool:
    """Whether output of type ``produced`` may feed input of type ``expected``.

    An opaque consumer accepts anything; otherwise the types must match
    exactly. An opaque producer never satisfies a typed consumer.
    """
    if expected.is_opaque:
        return True
    return produced == expected


__all__ = ["StreamKind", "StreamType", "TypeSignature", "can_connect"]
