"""
Read-only statistics over ideas, epics and tasks.

Every function here is pure: it takes an in-memory snapshot and returns
counts without touching the entity store, so it can be tested with plain
lists of models.
"""

from collections import Counter
from collections.abc import Iterable
from enum import Enum
from typing import NamedTuple, Protocol, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from .models import Epic, Idea, Priority, Task, TaskStatus, TaskType


class HasStatus(Protocol):
    status: TaskStatus


class HasPriority(Protocol):
    priority: Priority


class CompletionRatio(NamedTuple):
    """Done count, total count and whole-number percentage."""

    done: int
    total: int
    percent: int


def _breakdown(values: Iterable[Enum], enum_cls: type[Enum]) -> dict[str, int]:
    counts = Counter(values)
    # Enum declaration order, present values only
    return {member.value: counts[member] for member in enum_cls if counts[member]}


def status_breakdown(entities: Iterable[HasStatus]) -> dict[str, int]:
    """
    Count entities per status.

    Statuses that do not occur are omitted rather than zero-filled.

    Example:
        >>> status_breakdown(tasks)  # statuses: done, done, pending, blocked, done
        {'pending': 1, 'done': 3, 'blocked': 1}
    """
    return _breakdown((e.status for e in entities), TaskStatus)


def priority_breakdown(entities: Iterable[HasPriority]) -> dict[str, int]:
    """Count entities per priority, omitting absent priorities."""
    return _breakdown((e.priority for e in entities), Priority)


def type_breakdown(tasks: Iterable[Task]) -> dict[str, int]:
    """Count tasks per type, omitting absent types."""
    return _breakdown((t.type for t in tasks), TaskType)


def percent(part: int, whole: int) -> int:
    """Whole-number percentage rounded half up; 0 when *whole* is 0."""
    if whole == 0:
        return 0
    return (200 * part + whole) // (2 * whole)


def completion_ratio(entities: Iterable[HasStatus]) -> CompletionRatio:
    """
    Done count, total and rounded percentage.

    An empty collection is ``(0, 0, 0)``.
    """
    statuses = [e.status for e in entities]
    done = sum(1 for s in statuses if s == TaskStatus.DONE)
    return CompletionRatio(done, len(statuses), percent(done, len(statuses)))


def epics_for_idea(idea: Idea, all_epics: Iterable[Epic]) -> list[Epic]:
    """Epics listed on the idea or pointing back at it, in the idea's order first."""
    listed = {epic_id: i for i, epic_id in enumerate(idea.epic_ids)}
    matched = [e for e in all_epics if e.id in listed or e.idea_id == idea.id]
    return sorted(matched, key=lambda e: listed.get(e.id, len(listed)))


def tasks_for_idea(idea: Idea, all_tasks: Iterable[Task]) -> list[Task]:
    """Tasks whose epic is among the idea's epic IDs."""
    epic_ids = set(idea.epic_ids)
    return [t for t in all_tasks if t.epic_id in epic_ids]


def tasks_for_epic(epic: Epic, all_tasks: Iterable[Task]) -> list[Task]:
    """Tasks belonging to *epic*."""
    return [t for t in all_tasks if t.epic_id == epic.id]


StatsT = TypeVar("StatsT", bound="TaskStatistics")


class TaskStatistics(BaseModel):
    """Counts shared by idea and epic summaries."""

    total_tasks: int = Field(default=0, alias="totalTasks")
    completed_tasks: int = Field(default=0, alias="completedTasks")
    in_progress_tasks: int = Field(default=0, alias="inProgressTasks")
    blocked_tasks: int = Field(default=0, alias="blockedTasks")
    progress_percent: int = Field(default=0, alias="progressPercent")
    by_status: dict[str, int] = Field(default_factory=dict, alias="byStatus")
    by_priority: dict[str, int] = Field(default_factory=dict, alias="byPriority")
    by_type: dict[str, int] = Field(default_factory=dict, alias="byType")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_tasks(cls: type[StatsT], tasks: list[Task], **extra: object) -> StatsT:
        by_status = status_breakdown(tasks)
        ratio = completion_ratio(tasks)
        return cls(
            total_tasks=ratio.total,
            completed_tasks=ratio.done,
            in_progress_tasks=by_status.get(TaskStatus.IN_PROGRESS.value, 0),
            blocked_tasks=by_status.get(TaskStatus.BLOCKED.value, 0),
            progress_percent=ratio.percent,
            by_status=by_status,
            by_priority=priority_breakdown(tasks),
            by_type=type_breakdown(tasks),
            **extra,
        )


class IdeaStatistics(TaskStatistics):
    """Task statistics across every epic of an idea."""

    total_epics: int = Field(default=0, alias="totalEpics")
    completed_epics: int = Field(default=0, alias="completedEpics")


class EpicStatistics(TaskStatistics):
    """Task statistics for one epic."""


def summarize_idea(idea: Idea, epics: list[Epic], tasks: list[Task]) -> IdeaStatistics:
    """
    Statistics for an idea.

    Args:
        idea: The idea being summarized
        epics: Snapshot of epics (filtered to this idea here)
        tasks: Snapshot of tasks (filtered to this idea here)
    """
    own_epics = epics_for_idea(idea, epics)
    epic_ids = {e.id for e in own_epics}
    own_tasks = [t for t in tasks if t.epic_id in epic_ids]
    stats = IdeaStatistics.from_tasks(
        own_tasks,
        total_epics=len(own_epics),
        completed_epics=completion_ratio(own_epics).done,
    )
    return stats


def summarize_epic(epic: Epic, tasks: list[Task]) -> EpicStatistics:
    """Statistics for an epic over a task snapshot."""
    return EpicStatistics.from_tasks(tasks_for_epic(epic, tasks))
