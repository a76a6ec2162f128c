"""Stream types and the program type registry."""

from .registry import (
    OBJECTS,
    TypeRegistry,
    TypesFileError,
    default_registry,
    load_registry,
)
from .types import StreamKind, StreamType, TypeSignature, can_connect

__all__ = [
    "OBJECTS",
    "StreamKind",
    "StreamType",
    "TypeRegistry",
    "TypeSignature",
    "TypesFileError",
    "can_connect",
    "default_registry",
    "load_registry",
]
