"""Home layer: path resolution and file I/O (no Pydantic dependencies)."""

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

TYPES_FILENAME = "types.json"


def resolve_types_path(
    cli_path: Optional[Path] = None, home_dir: Optional[Path] = None
) -> Optional[Path]:
    """
    Resolve the types file path with precedence:
    1. CLI --types path
    2. TYPESH_TYPES env var
    3. <home>/types.json, if it exists

    Returns None when no types file applies (defaults only).
    """
    if cli_path:
        return cli_path

    env = os.getenv("TYPESH_TYPES")
    if env:
        return Path(env).expanduser()

    if home_dir is not None:
        candidate = home_dir / TYPES_FILENAME
        if candidate.exists():
            return candidate

    return None


def load_json(path: Path) -> Dict[str, Any]:
    """Load and parse JSON file."""
    return json.loads(path.read_text(encoding="utf-8"))
