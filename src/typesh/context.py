"""typesh context for passing state between CLI commands."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import click

from .home import resolve_types_path
from .streams.registry import TypeRegistry, default_registry, load_registry


@dataclass(frozen=True)
class HomePaths:
    """Resolved home directory and types file."""

    home_dir: Path
    types_path: Optional[Path]


def _user_global_home() -> Path:
    """Return the user global directory for typesh (~/.local/typesh)."""
    return Path.home() / ".local" / "typesh"


def _find_project_dir(start_dir: Optional[Path] = None) -> Optional[Path]:
    """Walk up from start_dir looking for a .typesh directory.

    Args:
        start_dir: Directory to start searching from (default: CWD)

    Returns:
        Path to the first .typesh directory found, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    while True:
        candidate = current / ".typesh"
        if candidate.is_dir():
            return candidate

        parent = current.parent
        if parent == current:
            return None
        current = parent


def resolve_home(home_option: Optional[str]) -> Path:
    """Resolve the typesh home directory.

    Resolution order:
    1. --home CLI flag (explicit override)
    2. $TYPESH_HOME environment variable
    3. Walk up from CWD looking for a .typesh directory (project-local)
    4. ~/.local/typesh (user global)
    """
    if home_option:
        return Path(home_option)

    env_home = os.environ.get("TYPESH_HOME")
    if env_home:
        return Path(env_home)

    project_dir = _find_project_dir()
    if project_dir:
        return project_dir

    return _user_global_home()


def resolve_paths(
    home_option: Optional[str], types_option: Optional[str] = None
) -> HomePaths:
    home_dir = resolve_home(home_option)
    types_path = resolve_types_path(
        Path(types_option) if types_option else None, home_dir
    )
    return HomePaths(home_dir=home_dir, types_path=types_path)


class TypeshContext:
    def __init__(self):
        self.home: Optional[Path] = None
        self.types_path: Optional[Path] = None
        self.verbose = False

    def registry(self) -> TypeRegistry:
        """Default registry overlaid with the types file, if any.

        Raises:
            TypesFileError: If the types file cannot be loaded.
        """
        registry = default_registry()
        if self.types_path is not None:
            registry = registry.merged(load_registry(self.types_path))
        return registry


pass_context = click.make_pass_decorator(TypeshContext, ensure=True)
