"""Scoped descriptor handles for one pipeline run.

Each handle is owned by the orchestrator until the stage that uses it has
been spawned; the orchestrator then closes its copy. Closing is idempotent
so the run's ``ExitStack`` can sweep up whatever is left on any exit path.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import BinaryIO, Optional

from ..syntax.ast import WriteMode


class Pipe:
    """An anonymous OS pipe between two adjacent stages."""

    def __init__(self):
        self._read_fd: Optional[int]
        self._write_fd: Optional[int]
        self._read_fd, self._write_fd = os.pipe()

    @property
    def read_fd(self) -> int:
        if self._read_fd is None:
            raise ValueError("read end already handed off")
        return self._read_fd

    @property
    def write_fd(self) -> int:
        if self._write_fd is None:
            raise ValueError("write end already handed off")
        return self._write_fd

    @property
    def closed(self) -> bool:
        return self._read_fd is None and self._write_fd is None

    def close_read(self) -> None:
        if self._read_fd is not None:
            fd, self._read_fd = self._read_fd, None
            os.close(fd)

    def close_write(self) -> None:
        if self._write_fd is not None:
            fd, self._write_fd = self._write_fd, None
            os.close(fd)

    def close(self) -> None:
        self.close_read()
        self.close_write()

    def __enter__(self) -> "Pipe":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Pipe(read={self._read_fd}, write={self._write_fd})"


def open_read_redirect(path: Path) -> BinaryIO:
    """Open ``< path``; the file must exist."""
    return open(path, "rb")


def open_write_redirect(path: Path, mode: WriteMode) -> BinaryIO:
    """Open ``> path`` (create/truncate) or ``>> path`` (create/append)."""
    return open(path, "ab" if mode is WriteMode.APPEND else "wb")


__all__ = ["Pipe", "open_read_redirect", "open_write_redirect"]
