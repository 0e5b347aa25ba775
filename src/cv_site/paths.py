"""
Path resolution helpers for CV Site.

Provides consistent path resolution relative to the repository root,
regardless of the current working directory.
"""

import logging
import os
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

# Default database location, relative to the repository root
DEFAULT_DB_PATH = Path("data/db/cv.db")

# Environment override for the database location
DB_ENV_VAR = "CVSITE_DB"

# Cache for the repository root
_repo_root: Optional[Path] = None


def get_repo_root() -> Path:
    """
    Get the repository root directory.

    Walks up from this file looking for pyproject.toml or cv_site.toml and
    falls back to the current working directory.
    """
    global _repo_root

    if _repo_root is not None:
        return _repo_root

    current = Path(__file__).resolve()
    markers = ["pyproject.toml", "cv_site.toml"]

    for parent in [current] + list(current.parents):
        for marker in markers:
            if (parent / marker).exists():
                _repo_root = parent
                return _repo_root

    _repo_root = Path.cwd().resolve()
    return _repo_root


def resolve_path(path: str | os.PathLike, base: Optional[Path] = None) -> Path:
    """
    Resolve a path, optionally relative to a base directory.

    Args:
        path: The path to resolve.
        base: Base directory for relative paths. Defaults to repo root.

    Returns:
        Resolved absolute path.
    """
    p = Path(path)
    if p.is_absolute():
        return p
    if base is None:
        base = get_repo_root()
    return (base / p).resolve()


def get_default_db_path() -> Path:
    """
    Default database path: $CVSITE_DB if set, else data/db/cv.db under the repo root.
    """
    env_path = os.environ.get(DB_ENV_VAR, "").strip()
    if env_path:
        logger.debug(f"Using database path from {DB_ENV_VAR}: {env_path}")
        return Path(env_path)
    return get_repo_root() / DEFAULT_DB_PATH
