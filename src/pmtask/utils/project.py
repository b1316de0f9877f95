"""
Project root discovery utilities for pm.

This module provides functions for discovering project boundaries
by searching for marker files like .pm/, .pm.json or .git/.
"""

from pathlib import Path

# Markers that indicate a project root, in order of priority
PROJECT_ROOT_MARKERS = [
    ".pm",  # pm data directory
    ".pm.json",  # pm configuration file
    ".git",  # Git repository
]


def find_project_root(start: Path | None = None) -> Path | None:
    """
    Find the project root directory by searching upward for marker files.

    Args:
        start: Directory to start searching from. Defaults to current working directory.

    Returns:
        Path to the project root directory, or None if not found.

    Example:
        >>> find_project_root(Path("/project/deep/nested/dir"))
        PosixPath('/project')
    """
    if start is None:
        start = Path.cwd()

    current = start.resolve()
    while True:
        for marker in PROJECT_ROOT_MARKERS:
            if (current / marker).exists():
                return current
        if current == current.parent:  # Stop at filesystem root
            return None
        current = current.parent


def get_project_root(start: Path | None = None) -> Path:
    """
    Project root for *start*, falling back to *start* itself.

    Unlike find_project_root this never fails: a directory without markers
    becomes the root of a new project.
    """
    if start is None:
        start = Path.cwd()
    return find_project_root(start) or start.resolve()
