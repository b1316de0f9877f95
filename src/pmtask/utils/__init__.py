"""Utility modules for pm."""

from .logging import EventLogger, EventType, LogEntry
from .project import find_project_root, get_project_root

__all__ = [
    "find_project_root",
    "get_project_root",
    "EventLogger",
    "EventType",
    "LogEntry",
]
