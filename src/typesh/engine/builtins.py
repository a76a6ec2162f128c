"""In-process builtins.

Builtins run synchronously inside the shell when their stage is spawned.
They neither read their input nor write their output, so running them
inline cannot block a neighbouring stage.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List

import click

from ..streams.types import TypeSignature
from .exits import ExitStatus


@dataclass
class Session:
    """Mutable shell state shared across commands."""

    current_dir: Path

    @classmethod
    def here(cls) -> "Session":
        return cls(current_dir=Path.cwd())


class Builtin:
    """Base class for builtins."""

    name: str = ""
    signature: TypeSignature = TypeSignature.of("none", "none")

    def run(self, session: Session, args: List[str]) -> ExitStatus:
        raise NotImplementedError


class Cd(Builtin):
    """``cd [dir]``: change the session's working directory."""

    name = "cd"

    def run(self, session: Session, args: List[str]) -> ExitStatus:
        if len(args) > 1:
            click.echo("typesh: cd: too many arguments", err=True)
            return ExitStatus.FAILURE

        target = Path.home() if not args else session.current_dir / args[0]
        if not target.is_dir():
            shown = args[0] if args else str(target)
            click.echo(f"typesh: cd: {shown}: no such file or directory", err=True)
            return ExitStatus.FAILURE

        session.current_dir = target.resolve()
        return ExitStatus.SUCCESS


BUILTINS: Dict[str, Builtin] = {builtin.name: builtin for builtin in (Cd(),)}


__all__ = ["BUILTINS", "Builtin", "Cd", "Session"]
