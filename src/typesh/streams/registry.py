"""Type registry: program name -> declared stream signature.

The registry is a plain object handed to the validator, so tests and
callers can build their own without touching process-wide state.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterator, Mapping, Tuple

from pydantic import BaseModel, Field

from ..home import load_json
from .types import StreamType, TypeSignature

# Structured record stream produced and consumed by the object-aware tools.
OBJECTS = "objects"


class TypeRegistry:
    """Lookup table of declared signatures.

    Unregistered names resolve to ``{[opaque], [opaque]}``. Lookups are
    case-sensitive, matching how programs are resolved on ``PATH``.
    """

    def __init__(self, entries: Mapping[str, TypeSignature] | None = None):
        self._entries: Dict[str, TypeSignature] = dict(entries or {})

    def lookup(self, program: str) -> TypeSignature:
        return self._entries.get(program, TypeSignature.opaque())

    def register(self, program: str, signature: TypeSignature) -> None:
        if not program or not program.strip():
            raise ValueError("Program name cannot be empty")
        self._entries[program] = signature

    def merged(self, other: "TypeRegistry") -> "TypeRegistry":
        """New registry with ``other``'s entries taking precedence."""
        combined = dict(self._entries)
        combined.update(other._entries)
        return TypeRegistry(combined)

    def items(self) -> Iterator[Tuple[str, TypeSignature]]:
        return iter(sorted(self._entries.items()))

    def __contains__(self, program: object) -> bool:
        return program in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"TypeRegistry({len(self._entries)} programs)"


def default_registry() -> TypeRegistry:
    """Registry with the bundled object-aware tools and builtins."""
    # Imported here: the engine depends on this package.
    from ..engine.builtins import BUILTINS

    registry = TypeRegistry(
        {
            "get": TypeSignature(
                input=StreamType.typed(OBJECTS), output=StreamType.typed(OBJECTS)
            ),
        }
    )
    for name, builtin in BUILTINS.items():
        registry.register(name, builtin.signature)
    return registry


class ProgramTypes(BaseModel):
    """One entry of a types file."""

    input: str = "opaque"
    output: str = "opaque"

    def signature(self) -> TypeSignature:
        return TypeSignature.of(self.input, self.output)


class TypesFile(BaseModel):
    """Root of a ``types.json`` file.

    Example::

        {"programs": {"get": {"input": "objects", "output": "objects"}}}
    """

    programs: Dict[str, ProgramTypes] = Field(default_factory=dict)


class TypesFileError(Exception):
    """A types file is missing or malformed."""


def load_registry(path: Path) -> TypeRegistry:
    """Load a registry from a JSON types file.

    Raises:
        TypesFileError: If the file cannot be read or fails validation.
    """
    try:
        data = load_json(path)
    except (OSError, ValueError) as e:
        raise TypesFileError(f"cannot read types file {path}: {e}") from e

    try:
        types_file = TypesFile.model_validate(data)
        return TypeRegistry(
            {name: entry.signature() for name, entry in types_file.programs.items()}
        )
    except ValueError as e:
        raise TypesFileError(f"invalid types file {path}: {e}") from e


__all__ = [
    "OBJECTS",
    "ProgramTypes",
    "TypeRegistry",
    "TypesFile",
    "TypesFileError",
    "default_registry",
    "load_registry",
]
