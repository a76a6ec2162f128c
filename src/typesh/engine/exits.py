"""Exit statuses of stages and pipelines."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional

from ..errors import (
    EXIT_BAD_SYNTAX,
    EXIT_COMMAND_NOT_FOUND,
    EXIT_COULD_NOT_EXECUTE,
    EXIT_FAILURE,
)


@dataclass(frozen=True)
class ExitStatus:
    """How a process ended: an exit code, or the signal that killed it."""

    code: Optional[int] = None
    signal: Optional[int] = None

    SUCCESS: ClassVar["ExitStatus"]
    FAILURE: ClassVar["ExitStatus"]
    BAD_SYNTAX: ClassVar["ExitStatus"]
    COULD_NOT_EXECUTE: ClassVar["ExitStatus"]
    COMMAND_NOT_FOUND: ClassVar["ExitStatus"]

    def __post_init__(self):
        if (self.code is None) == (self.signal is None):
            raise ValueError("ExitStatus needs exactly one of code or signal")

    @classmethod
    def from_returncode(cls, returncode: int) -> "ExitStatus":
        """Convert a ``Popen.returncode`` (negative means killed by signal)."""
        if returncode < 0:
            return cls(signal=-returncode)
        return cls(code=returncode)

    @property
    def success(self) -> bool:
        return self.code == 0

    @property
    def signaled(self) -> bool:
        return self.signal is not None

    @property
    def returncode(self) -> int:
        """Status as a process exit code; signals map to 128 + signo."""
        if self.signal is not None:
            return 128 + self.signal
        return self.code

    @staticmethod
    def reduce_worst(a: "ExitStatus", b: "ExitStatus") -> "ExitStatus":
        """First unsuccessful status of the two, like a chain of ``&&``."""
        return a if not a.success else b

    def __str__(self) -> str:
        if self.signal is not None:
            return f"signal({self.signal})"
        return str(self.code)


ExitStatus.SUCCESS = ExitStatus(code=0)
ExitStatus.FAILURE = ExitStatus(code=EXIT_FAILURE)
ExitStatus.BAD_SYNTAX = ExitStatus(code=EXIT_BAD_SYNTAX)
ExitStatus.COULD_NOT_EXECUTE = ExitStatus(code=EXIT_COULD_NOT_EXECUTE)
ExitStatus.COMMAND_NOT_FOUND = ExitStatus(code=EXIT_COMMAND_NOT_FOUND)


__all__ = ["ExitStatus"]
