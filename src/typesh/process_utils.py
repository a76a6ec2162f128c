"""Process and subprocess utilities shared by the engine and the CLI.

Includes a validating wrapper around ``subprocess.Popen``, program lookup
on the search path, and the environment handed to spawned stages. Lives
outside the engine package so the CLI can use it without importing the
executor.
"""

from __future__ import annotations

import os
import shutil
import subprocess
from collections.abc import Sequence
from pathlib import Path
from typing import Any, Optional

CommandArg = str | os.PathLike[str]


def _normalize_command(cmd: Sequence[CommandArg]) -> list[str]:
    """Validate and normalize subprocess command arguments.

    The program name must be non-blank. Arguments may be empty strings,
    since ``echo ''`` is a legitimate invocation.
    """
    if not cmd:
        msg = "Command must include at least one argument"
        raise ValueError(msg)

    normalized: list[str] = []
    for arg in cmd:
        if isinstance(arg, os.PathLike):
            value = os.fspath(arg)
        elif isinstance(arg, str):
            value = arg
        else:
            msg = "Command arguments must be strings or os.PathLike"
            raise TypeError(msg)

        if "\0" in value:
            msg = "Command arguments cannot contain NUL bytes"
            raise ValueError(msg)

        normalized.append(value)

    if not normalized[0].strip():
        msg = "Program name cannot be empty or whitespace"
        raise ValueError(msg)

    return normalized


def popen_with_validation(
    cmd: Sequence[CommandArg], **kwargs: Any
) -> subprocess.Popen[Any]:
    """Run subprocess.Popen with validation to satisfy security lint checks."""
    normalized_cmd = _normalize_command(cmd)
    return subprocess.Popen(normalized_cmd, **kwargs)  # noqa: S603


def build_search_path(env: Optional[dict] = None) -> str:
    """Directories searched for programs: ``$TYPESH_PATH`` then ``$PATH``."""
    env = os.environ if env is None else env
    parts = [
        p
        for p in (env.get("TYPESH_PATH", ""), env.get("PATH", os.defpath))
        if p
    ]
    return os.pathsep.join(parts)


def resolve_program(
    program: str, cwd: Path, search_path: Optional[str] = None
) -> Optional[str]:
    """Locate ``program``, returning its path or None if it cannot be found.

    Names containing a path separator are taken relative to ``cwd`` and are
    not looked up on the search path.
    """
    if os.sep in program or (os.altsep and os.altsep in program):
        candidate = cwd / program
        return str(candidate) if candidate.exists() else None

    if search_path is None:
        search_path = build_search_path()
    return shutil.which(program, path=search_path)


def build_stage_env(working_dir: Path, home_dir: Optional[Path] = None) -> dict:
    """Environment for spawned stages.

    Starts from ``os.environ`` and adds:
    - TYPESH_HOME: resolved home directory, when known
    - TYPESH_WORKING_DIR / PWD: the shell's current directory
    """
    env = os.environ.copy()
    if home_dir is not None:
        env["TYPESH_HOME"] = str(home_dir)
    env["TYPESH_WORKING_DIR"] = str(working_dir)
    env["PWD"] = str(working_dir)
    return env
