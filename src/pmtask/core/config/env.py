"""
.env file support for pm settings.

``PM_*`` overrides can live in dotenv files as well as the shell. Files are
read lowest-priority first and merged, so a later file wins over an earlier
one for the same key:

    user ``<XDG_CONFIG_HOME>/pm/.env``
    project ``.env``
    project ``.env.local``

The merged values are then exported into ``os.environ`` for every key the
process environment does not already define.
"""

import logging
import os
from collections.abc import Iterable
from pathlib import Path

from dotenv import dotenv_values

from .loader import get_xdg_config_home

logger = logging.getLogger(__name__)

PROJECT_ENV_FILES = (".env", ".env.local")


def get_user_env_path() -> Path:
    """Path to the user-level .env file."""
    return get_xdg_config_home() / "pm" / ".env"


def merge_env_files(paths: Iterable[Path]) -> dict[str, str]:
    """
    Merge dotenv files in order; keys without a value are dropped.

    Missing files are skipped.
    """
    merged: dict[str, str] = {}
    for path in paths:
        path = Path(path)
        if not path.is_file():
            continue
        values = {k: v for k, v in dotenv_values(path).items() if v is not None}
        logger.debug("Read %d variables from %s", len(values), path)
        merged.update(values)
    return merged


def load_layered_env(
    *,
    project_dir: Path | None = None,
    user_env_paths: Iterable[Path] | None = None,
    project_env_paths: Iterable[Path] | None = None,
) -> set[str]:
    """
    Export .env values into ``os.environ`` without clobbering the shell.

    Args:
        project_dir: Directory holding the project .env files (defaults to cwd)
        user_env_paths: Override the user-level files
        project_env_paths: Override the project-level files

    Returns:
        Names of the variables this call added to ``os.environ``
    """
    project_dir = project_dir or Path.cwd()
    if user_env_paths is None:
        user_env_paths = [get_user_env_path()]
    if project_env_paths is None:
        project_env_paths = [project_dir / name for name in PROJECT_ENV_FILES]

    merged = merge_env_files([*user_env_paths, *project_env_paths])
    added = {key for key in merged if key not in os.environ}
    for key in added:
        os.environ[key] = merged[key]
    return added
