"""
Task lifecycle engine.

Applies a validated change request to one task, epic or idea: compares each requested
field with the current value, validates the requested dependency set
against the store, appends progress notes, and persists the task with a
single whole-record write. The engine returns structured results only;
rendering is left to the caller.

Algorithm (per task request; ideas and epics use steps 1, 3, 5 and 6):
    1. Load the task (NotFoundError if absent) and its epic/idea for context.
    2. Validate every requested dependency ID (DependencyNotFoundError).
    3. Stage field changes on a copy, recording a ChangeLog entry per real change.
    4. Append the progress note, if any.
    5. Empty ChangeLog → return without saving or touching updatedAt.
    6. Otherwise stamp updatedAt and save; PersistenceError propagates.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from .exceptions import (
    DependencyCycleError,
    DependencyNotFoundError,
    FieldError,
    NotFoundError,
    TaskValidationError,
)
from .graph import DependencyGraph
from .models import Epic, Idea, Priority, ProgressNote, ProgressType, Task, TaskStatus
from .store import EntityStore
from .validation import (
    EntityUpdateRequest,
    EpicUpdateRequest,
    IdeaUpdateRequest,
    TaskUpdateRequest,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

UNKNOWN_EPIC = "Unknown Epic"
UNKNOWN_IDEA = "Unknown Idea"


def utc_now() -> datetime:
    """Default clock."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class FieldChange:
    """Machine-readable before/after values for one changed field."""

    field: str
    old: Any
    new: Any


@dataclass
class ChangeLog:
    """
    Ordered record of what one update changed.

    ``entries`` holds the human-readable diff lines
    (e.g. ``"Status: pending → in-progress"``); ``changes`` holds the same
    deltas as structured values.
    """

    entries: list[str] = field(default_factory=list)
    changes: list[FieldChange] = field(default_factory=list)

    def record(self, entry: str, change: FieldChange | None) -> None:
        self.entries.append(entry)
        if change is not None:
            self.changes.append(change)

    @property
    def changed_fields(self) -> list[str]:
        return [c.field for c in self.changes]

    def __len__(self) -> int:
        return len(self.entries)

    def __bool__(self) -> bool:
        return bool(self.entries)


@dataclass(frozen=True)
class TaskContext:
    """Epic and idea the task belongs to, with placeholders for dangling references."""

    epic_id: str
    epic_title: str = UNKNOWN_EPIC
    idea_id: str | None = None
    idea_title: str = UNKNOWN_IDEA


@dataclass
class TaskUpdateResult:
    """Outcome of one applied update."""

    task: Task
    change_log: ChangeLog
    context: TaskContext
    old_status: TaskStatus
    old_priority: Priority

    @property
    def changed(self) -> bool:
        return bool(self.change_log)

    @property
    def has_progress_note(self) -> bool:
        return "progress_notes" in self.change_log.changed_fields

    def summary(self) -> dict[str, Any]:
        """Machine-readable summary for formatting and telemetry."""
        data = _update_summary(
            "task", self.task, self.change_log, self.old_status, self.old_priority
        )
        data.update(
            {
                "hasProgressNote": self.has_progress_note,
                "progressNotesCount": len(self.task.progress_notes),
                "parentEpicId": self.task.epic_id,
                "epicTitle": self.context.epic_title,
                "ideaTitle": self.context.idea_title,
            }
        )
        return data


@dataclass
class EntityUpdateResult:
    """Outcome of one applied idea or epic update."""

    entity_type: str
    entity: Idea | Epic
    change_log: ChangeLog
    old_status: TaskStatus
    old_priority: Priority
    context: dict[str, Any] = field(default_factory=dict)

    @property
    def changed(self) -> bool:
        return bool(self.change_log)

    def summary(self) -> dict[str, Any]:
        """Machine-readable summary for formatting and telemetry."""
        data = _update_summary(
            self.entity_type, self.entity, self.change_log, self.old_status, self.old_priority
        )
        data.update(self.context)
        return data


def _update_summary(
    entity_type: str,
    entity: Idea | Epic | Task,
    log: ChangeLog,
    old_status: TaskStatus,
    old_priority: Priority,
) -> dict[str, Any]:
    data: dict[str, Any] = {
        "entityType": entity_type,
        "entityId": entity.id,
        "operation": "update",
        "operationSuccess": bool(log),
        "updatedFields": list(log.entries),
        "oldStatus": old_status.value,
        "newStatus": entity.status.value,
        "oldPriority": old_priority.value,
        "newPriority": entity.priority.value,
    }
    if not log:
        data["reason"] = "no_changes"
    return data


def next_note_id(task: Task, now: datetime) -> str:
    """Time-derived note ID, bumped until unique within *task*."""
    existing = task.note_ids()
    millis = int(now.timestamp() * 1000)
    while f"PRG-{millis}" in existing:
        millis += 1
    return f"PRG-{millis}"


def _check_target(id_field: str, request: EntityUpdateRequest, entity_id: str) -> None:
    if request.entity_id != entity_id:
        raise TaskValidationError(
            [FieldError(id_field, f"request targets {request.entity_id}, not {entity_id}")]
        )


def _stage_common_fields(
    current: Idea | Epic | Task,
    staged: Idea | Epic | Task,
    request: EntityUpdateRequest,
    log: ChangeLog,
) -> None:
    """Copy status, priority, title and description changes onto *staged*."""
    if request.status is not None and request.status != current.status:
        staged.status = request.status
        log.record(
            f"Status: {current.status.value} → {request.status.value}",
            FieldChange("status", current.status.value, request.status.value),
        )
        if current.status == TaskStatus.DONE:
            logger.info("Reopening done %s as %s", current.id, request.status.value)

    if request.priority is not None and request.priority != current.priority:
        staged.priority = request.priority
        log.record(
            f"Priority: {current.priority.value} → {request.priority.value}",
            FieldChange("priority", current.priority.value, request.priority.value),
        )

    if request.title is not None and request.title != current.title:
        staged.title = request.title
        log.record(
            f'Title: "{current.title}" → "{request.title}"',
            FieldChange("title", current.title, request.title),
        )

    if request.description is not None and request.description != current.description:
        staged.description = request.description
        log.record(
            "Description updated",
            FieldChange("description", current.description, request.description),
        )


class TaskLifecycleEngine:
    """
    Applies change requests to tasks, epics and ideas.

    The engine enforces closed enumerations (via the validated request),
    dependency existence, self-dependency rejection and append-only notes.
    Status transitions are unrestricted: any status may follow any other.

    Example:
        >>> engine = TaskLifecycleEngine(store)
        >>> request = validate_update_request(
        ...     {"taskId": "TSK-9", "status": "in-progress", "progressNote": "Starting work"}
        ... )
        >>> result = engine.apply_update("TSK-9", request)
        >>> result.change_log.entries
        ['Status: pending → in-progress', 'Added progress note: "Starting work"']
    """

    def __init__(
        self,
        store: EntityStore,
        clock: Clock = utc_now,
        reject_dependency_cycles: bool = False,
    ) -> None:
        """
        Initialize the engine.

        Args:
            store: Entity store used for loads and the final save
            clock: Source of the operation time
            reject_dependency_cycles: Raise DependencyCycleError instead of
                warning when a dependency update would form a cycle
        """
        self.store = store
        self.clock = clock
        self.reject_dependency_cycles = reject_dependency_cycles

    def load_context(self, task: Task) -> TaskContext:
        """Resolve the task's epic and idea titles; missing records become placeholders."""
        epic = self.store.load_epic(task.epic_id)
        if epic is None:
            logger.warning("Task %s references missing epic %s", task.id, task.epic_id)
            return TaskContext(epic_id=task.epic_id)

        idea = self.store.load_idea(epic.idea_id)
        if idea is None:
            logger.warning("Epic %s references missing idea %s", epic.id, epic.idea_id)
        return TaskContext(
            epic_id=epic.id,
            epic_title=epic.title,
            idea_id=epic.idea_id,
            idea_title=idea.title if idea else UNKNOWN_IDEA,
        )

    def apply_update(self, task_id: str, request: TaskUpdateRequest) -> TaskUpdateResult:
        """
        Apply *request* to task *task_id*.

        Args:
            task_id: Task to update; must match ``request.task_id``
            request: Validated change request

        Returns:
            TaskUpdateResult with the updated task and its ChangeLog. An
            empty ChangeLog means nothing was saved.

        Raises:
            NotFoundError: If the task does not exist
            DependencyNotFoundError: If a requested dependency does not exist
            DependencyCycleError: If cycle rejection is on and the update closes a loop
            PersistenceError: If the store write fails
        """
        _check_target("taskId", request, task_id)
        current = self.store.load_task(task_id)
        if current is None:
            raise NotFoundError("task", task_id)

        context = self.load_context(current)

        if request.is_set("dependencies"):
            self._check_dependencies(current, request.dependencies or [])

        # Stage on a copy; `current` stays as loaded
        task = current.model_copy(deep=True)
        now = self.clock()
        log = ChangeLog()

        _stage_common_fields(current, task, request, log)

        if request.is_set("dependencies"):
            requested = request.dependencies or []
            added = [d for d in requested if d not in current.dependencies]
            removed = [d for d in current.dependencies if d not in requested]
            if added or removed:
                task.dependencies = list(requested)
                change = FieldChange("dependencies", list(current.dependencies), list(requested))
                if added:
                    log.record(f"Added dependencies: {', '.join(added)}", change)
                if removed:
                    log.record(
                        f"Removed dependencies: {', '.join(removed)}",
                        None if added else change,
                    )

        if request.progress_note is not None:
            note = ProgressNote(
                id=next_note_id(task, now),
                task_id=task.id,
                content=request.progress_note,
                type=request.progress_type or ProgressType.UPDATE,
                timestamp=now,
            )
            task.append_progress_note(note)
            log.record(
                f'Added progress note: "{request.progress_note}"',
                FieldChange("progress_notes", None, note.id),
            )
        elif request.is_set("progress_type"):
            logger.debug("Ignoring progressType for %s: no progress note given", task_id)

        result = TaskUpdateResult(
            task=task,
            change_log=log,
            context=context,
            old_status=current.status,
            old_priority=current.priority,
        )

        if not log:
            logger.debug("No changes for task %s", task_id)
            result.task = current
            return result

        task.updated_at = now
        self.store.save_task(task)
        logger.info("Updated task %s: %s", task_id, "; ".join(log.entries))
        return result

    def apply_idea_update(self, idea_id: str, request: IdeaUpdateRequest) -> EntityUpdateResult:
        """
        Apply *request* to idea *idea_id*.

        Only status, priority, title and description can change; the epic
        list is maintained by epic creation.

        Raises:
            NotFoundError: If the idea does not exist
            PersistenceError: If the store write fails
        """
        _check_target("ideaId", request, idea_id)
        current = self.store.load_idea(idea_id)
        if current is None:
            raise NotFoundError("idea", idea_id)

        idea = current.model_copy(deep=True)
        log = ChangeLog()
        _stage_common_fields(current, idea, request, log)

        result = EntityUpdateResult(
            entity_type="idea",
            entity=idea,
            change_log=log,
            old_status=current.status,
            old_priority=current.priority,
            context={"epicsCount": len(current.epic_ids)},
        )
        if not log:
            logger.debug("No changes for idea %s", idea_id)
            result.entity = current
            return result

        idea.updated_at = self.clock()
        self.store.save_idea(idea)
        logger.info("Updated idea %s: %s", idea_id, "; ".join(log.entries))
        return result

    def apply_epic_update(self, epic_id: str, request: EpicUpdateRequest) -> EntityUpdateResult:
        """
        Apply *request* to epic *epic_id*.

        The parent idea is looked up for the summary only; a missing idea
        is reported with a placeholder title.

        Raises:
            NotFoundError: If the epic does not exist
            PersistenceError: If the store write fails
        """
        _check_target("epicId", request, epic_id)
        current = self.store.load_epic(epic_id)
        if current is None:
            raise NotFoundError("epic", epic_id)

        idea = self.store.load_idea(current.idea_id)
        if idea is None:
            logger.warning("Epic %s references missing idea %s", epic_id, current.idea_id)

        epic = current.model_copy(deep=True)
        log = ChangeLog()
        _stage_common_fields(current, epic, request, log)

        result = EntityUpdateResult(
            entity_type="epic",
            entity=epic,
            change_log=log,
            old_status=current.status,
            old_priority=current.priority,
            context={
                "parentIdeaId": current.idea_id,
                "ideaTitle": idea.title if idea else UNKNOWN_IDEA,
            },
        )
        if not log:
            logger.debug("No changes for epic %s", epic_id)
            result.entity = current
            return result

        epic.updated_at = self.clock()
        self.store.save_epic(epic)
        logger.info("Updated epic %s: %s", epic_id, "; ".join(log.entries))
        return result

    def _check_dependencies(self, task: Task, requested: list[str]) -> None:
        """Validate a requested dependency set before anything is staged."""
        missing = [dep_id for dep_id in requested if self.store.load_task(dep_id) is None]
        if missing:
            raise DependencyNotFoundError(task.id, missing)

        if not [d for d in requested if d not in task.dependencies]:
            return

        graph = DependencyGraph(self.store.load_all_tasks())
        cycle = graph.cycle_with(task.id, requested)
        if cycle is None:
            return
        if self.reject_dependency_cycles:
            raise DependencyCycleError(task.id, cycle)
        logger.warning(
            "Dependency update for %s creates a cycle: %s", task.id, " → ".join(cycle)
        )
