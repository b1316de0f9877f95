"""
Task service: the single entry point for agent-facing operations.

Wires request validation, the approval gate, the lifecycle engine, the
aggregation helpers and the structured event log together over one
EntityStore. CLI commands and other callers go through TaskService rather
than touching the store directly.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, TypeVar

from pmtask.core.config import PmConfig, load_config
from pmtask.utils.logging import EventLogger
from pmtask.utils.project import get_project_root

from .approvals import UPDATE_EPIC, UPDATE_IDEA, UPDATE_TASK, ApprovalPolicy
from .exceptions import (
    DependencyNotFoundError,
    FieldError,
    NotFoundError,
    PmError,
    TaskValidationError,
)
from .graph import DependencyGraph
from .lifecycle import (
    Clock,
    EntityUpdateResult,
    TaskLifecycleEngine,
    TaskUpdateResult,
    utc_now,
)
from .models import Epic, Idea, Priority, Task, TaskStatus, TaskType
from .stats import (
    EpicStatistics,
    IdeaStatistics,
    epics_for_idea,
    summarize_epic,
    summarize_idea,
    tasks_for_epic,
)
from .store import EntityStore, get_store
from .validation import (
    EpicUpdateRequest,
    IdeaUpdateRequest,
    validate_request,
    validate_update_request,
)

logger = logging.getLogger(__name__)

EnumT = TypeVar("EnumT", bound=Enum)

CREATE_IDEA = "create_idea"
CREATE_EPIC = "create_epic"
CREATE_TASK = "create_task"

EVENTS_FILENAME = "events.jsonl"


@dataclass
class DependencyReport:
    """
    Resolved dependencies of one task.

    Attributes:
        task: The task whose dependencies were resolved
        dependencies: Dependency tasks that exist, in declaration order
        missing: Dependency IDs that no longer resolve
        unblocks: IDs of tasks that directly depend on this one
        can_start: True when every existing dependency is done
    """

    task: Task
    dependencies: list[Task] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    unblocks: list[str] = field(default_factory=list)

    def _count(self, status: TaskStatus) -> int:
        return sum(1 for t in self.dependencies if t.status == status)

    @property
    def total(self) -> int:
        return len(self.task.dependencies)

    @property
    def completed(self) -> int:
        return self._count(TaskStatus.DONE)

    @property
    def in_progress(self) -> int:
        return self._count(TaskStatus.IN_PROGRESS)

    @property
    def blocked(self) -> int:
        return self._count(TaskStatus.BLOCKED)

    @property
    def pending(self) -> int:
        return self._count(TaskStatus.PENDING)

    @property
    def can_start(self) -> bool:
        return all(t.is_done for t in self.dependencies)

    def summary(self) -> dict[str, Any]:
        return {
            "taskId": self.task.id,
            "totalDependencies": self.total,
            "completedDependencies": self.completed,
            "inProgressDependencies": self.in_progress,
            "blockedDependencies": self.blocked,
            "pendingDependencies": self.pending,
            "missingDependencies": list(self.missing),
            "unblocks": list(self.unblocks),
            "canStart": self.can_start,
        }


@dataclass
class IdeaOverview:
    """An idea with its epics, their tasks and aggregate statistics."""

    idea: Idea
    epics: list[Epic]
    tasks: list[Task]
    stats: IdeaStatistics

    def tasks_for(self, epic: Epic) -> list[Task]:
        return tasks_for_epic(epic, self.tasks)


@dataclass
class EpicOverview:
    """An epic with its parent idea title, its tasks and statistics."""

    epic: Epic
    idea_title: str | None
    tasks: list[Task]
    stats: EpicStatistics


def _coerce(enum_cls: type[EnumT], value: EnumT | str, field_name: str) -> EnumT:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(str(m.value) for m in enum_cls)
        raise TaskValidationError(
            [FieldError(field_name, f"'{value}' is not one of: {allowed}")]
        ) from None


def _raw_id(args: Any, alias: str, name: str) -> str:
    if not isinstance(args, Mapping):
        return ""
    return str(args.get(alias, args.get(name, "")))


def _require_title(title: str) -> str:
    if not title or not title.strip():
        raise TaskValidationError([FieldError("title", "must not be empty")])
    return title.strip()


class TaskService:
    """
    Agent-facing operations over an entity store.

    Example:
        >>> service = TaskService(MemoryStore(), config=PmConfig())
        >>> result = service.update_task({"taskId": "TSK-9", "status": "in-progress"})
        >>> result.summary()["newStatus"]
        'in-progress'
    """

    def __init__(
        self,
        store: EntityStore,
        config: PmConfig | None = None,
        clock: Clock = utc_now,
        events: EventLogger | None = None,
    ) -> None:
        """
        Initialize the service.

        Args:
            store: Entity store holding ideas, epics and tasks
            config: Loaded configuration (defaults when None)
            clock: Source of operation timestamps
            events: Structured event log; None disables event logging
        """
        self.store = store
        self.config = config or PmConfig()
        self.clock = clock
        self.events = events
        self.policy = ApprovalPolicy(required=self.config.approval.required)
        self.engine = TaskLifecycleEngine(
            store,
            clock=clock,
            reject_dependency_cycles=self.config.lifecycle.reject_dependency_cycles,
        )

    @classmethod
    def from_config(
        cls, project_dir: Path | None = None, config: PmConfig | None = None
    ) -> "TaskService":
        """
        Build a service for the project containing *project_dir*.

        Loads configuration when not given, resolves the data directory
        against the project root and opens the configured store.
        """
        project_root = get_project_root(project_dir)
        if config is None:
            config = load_config(project_root)

        data_dir = config.storage.resolve_data_dir(project_root)
        store = get_store(config.storage.backend, data_dir)

        events = None
        if config.logging.events_enabled:
            events_file = (
                Path(config.logging.events_file).expanduser()
                if config.logging.events_file
                else data_dir / EVENTS_FILENAME
            )
            events = EventLogger(events_file)

        logger.debug("Using %s store at %s", store.store_name, data_dir)
        return cls(store, config=config, events=events)

    # ------------------------------------------------------------------
    # Updates
    # ------------------------------------------------------------------

    def update_task(self, args: Mapping[str, Any]) -> TaskUpdateResult:
        """
        Validate, gate and apply one task change request.

        Args:
            args: Raw request (camelCase keys, e.g. ``{"taskId": "TSK-9",
                "status": "in-progress"}``)

        Returns:
            TaskUpdateResult; an empty ChangeLog means nothing was saved

        Raises:
            TaskValidationError: If the request is malformed
            ApprovalRequiredError: If the request is gated and not approved
            NotFoundError: If the task does not exist
            DependencyNotFoundError: If a requested dependency does not exist
            PersistenceError: If the store write fails
        """
        task_id = _raw_id(args, "taskId", "task_id")
        try:
            request = validate_update_request(args)
            self.policy.check(request, UPDATE_TASK)
            result = self.engine.apply_update(request.task_id, request)
        except PmError as e:
            if self.events is not None:
                self.events.log_update_rejected(task_id, type(e).__name__, e.message)
            raise

        if self.events is not None:
            self.events.log_task_updated(result.summary())
        return result

    def update_idea(self, args: Mapping[str, Any]) -> EntityUpdateResult:
        """
        Validate, gate and apply one idea change request.

        Args:
            args: Raw request, e.g. ``{"ideaId": "IDEA-1", "status": "done"}``

        Raises:
            TaskValidationError: If the request is malformed
            ApprovalRequiredError: If the request is gated and not approved
            NotFoundError: If the idea does not exist
            PersistenceError: If the store write fails
        """
        idea_id = _raw_id(args, "ideaId", "idea_id")
        try:
            request = validate_request(IdeaUpdateRequest, args)
            self.policy.check(request, UPDATE_IDEA)
            result = self.engine.apply_idea_update(request.idea_id, request)
        except PmError as e:
            self._entity_update_rejected("idea", idea_id, e)
            raise

        if self.events is not None:
            self.events.log_entity_updated(result.summary())
        return result

    def update_epic(self, args: Mapping[str, Any]) -> EntityUpdateResult:
        """
        Validate, gate and apply one epic change request.

        Args:
            args: Raw request, e.g. ``{"epicId": "EPIC-2", "priority": "high"}``

        Raises:
            TaskValidationError: If the request is malformed
            ApprovalRequiredError: If the request is gated and not approved
            NotFoundError: If the epic does not exist
            PersistenceError: If the store write fails
        """
        epic_id = _raw_id(args, "epicId", "epic_id")
        try:
            request = validate_request(EpicUpdateRequest, args)
            self.policy.check(request, UPDATE_EPIC)
            result = self.engine.apply_epic_update(request.epic_id, request)
        except PmError as e:
            self._entity_update_rejected("epic", epic_id, e)
            raise

        if self.events is not None:
            self.events.log_entity_updated(result.summary())
        return result

    def _entity_update_rejected(self, entity_type: str, entity_id: str, error: PmError) -> None:
        if self.events is not None:
            self.events.log_entity_update_rejected(
                entity_type, entity_id, type(error).__name__, error.message
            )

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def _allocate_id(self, kind: str) -> str:
        return self.config.ids.format(kind, self.store.next_id())

    def _created(self, entity_type: str, entity_id: str, title: str) -> None:
        logger.info("Created %s %s: %s", entity_type, entity_id, title)
        if self.events is not None:
            self.events.log_entity_created(entity_type, entity_id, title)

    def create_idea(
        self,
        title: str,
        description: str = "",
        priority: Priority | str = Priority.MEDIUM,
        approval_confirmed: bool = False,
    ) -> Idea:
        """Create a new idea. Gated."""
        title = _require_title(title)
        prio = _coerce(Priority, priority, "priority")
        self.policy.check_operation(CREATE_IDEA, approval_confirmed)

        now = self.clock()
        idea = Idea(
            id=self._allocate_id("idea"),
            title=title,
            description=description,
            priority=prio,
            created_at=now,
            updated_at=now,
        )
        self.store.save_idea(idea)
        self._created("idea", idea.id, idea.title)
        return idea

    def create_epic(
        self,
        idea_id: str,
        title: str,
        description: str = "",
        priority: Priority | str = Priority.MEDIUM,
        approval_confirmed: bool = False,
    ) -> Epic:
        """
        Create an epic under an existing idea. Gated.

        The epic's ID is appended to the idea's ``epic_ids`` before the epic
        itself is saved, so a failed epic write leaves at most a dangling ID
        on the idea, which readers skip.

        Raises:
            NotFoundError: If the idea does not exist
        """
        title = _require_title(title)
        prio = _coerce(Priority, priority, "priority")
        self.policy.check_operation(CREATE_EPIC, approval_confirmed)

        idea = self.get_idea(idea_id)
        now = self.clock()
        epic = Epic(
            id=self._allocate_id("epic"),
            idea_id=idea.id,
            title=title,
            description=description,
            priority=prio,
            created_at=now,
            updated_at=now,
        )
        idea.epic_ids.append(epic.id)
        idea.updated_at = now
        self.store.save_idea(idea)
        self.store.save_epic(epic)

        self._created("epic", epic.id, epic.title)
        return epic

    def create_task(
        self,
        epic_id: str,
        title: str,
        description: str = "",
        priority: Priority | str = Priority.MEDIUM,
        task_type: TaskType | str = TaskType.TASK,
        dependencies: list[str] | None = None,
        approval_confirmed: bool = False,
    ) -> Task:
        """
        Create a pending task under an existing epic. Gated.

        The ID prefix follows the task type (``TSK``, ``BUG``, ``RND``).

        Raises:
            NotFoundError: If the epic does not exist
            DependencyNotFoundError: If a dependency does not exist
        """
        title = _require_title(title)
        prio = _coerce(Priority, priority, "priority")
        kind = _coerce(TaskType, task_type, "type")
        deps = list(dict.fromkeys(d.strip() for d in dependencies or []))
        if any(not d for d in deps):
            raise TaskValidationError([FieldError("dependencies", "IDs must not be empty")])
        self.policy.check_operation(CREATE_TASK, approval_confirmed)

        epic = self.get_epic(epic_id)
        missing = [d for d in deps if self.store.load_task(d) is None]
        if missing:
            raise DependencyNotFoundError(None, missing)

        now = self.clock()
        task = Task(
            id=self._allocate_id(kind.value),
            epic_id=epic.id,
            title=title,
            description=description,
            type=kind,
            status=TaskStatus.PENDING,
            priority=prio,
            dependencies=deps,
            created_at=now,
            updated_at=now,
        )
        self.store.save_task(task)
        self._created("task", task.id, task.title)
        return task

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_task(self, task_id: str) -> Task:
        task = self.store.load_task(task_id)
        if task is None:
            raise NotFoundError("task", task_id)
        return task

    def get_epic(self, epic_id: str) -> Epic:
        epic = self.store.load_epic(epic_id)
        if epic is None:
            raise NotFoundError("epic", epic_id)
        return epic

    def get_idea(self, idea_id: str) -> Idea:
        idea = self.store.load_idea(idea_id)
        if idea is None:
            raise NotFoundError("idea", idea_id)
        return idea

    def list_tasks(
        self,
        status: TaskStatus | str | None = None,
        priority: Priority | str | None = None,
        epic_id: str | None = None,
    ) -> list[Task]:
        """List tasks, optionally filtered, in store order."""
        tasks = self.store.load_all_tasks()
        if status is not None:
            wanted_status = _coerce(TaskStatus, status, "status")
            tasks = [t for t in tasks if t.status == wanted_status]
        if priority is not None:
            wanted_priority = _coerce(Priority, priority, "priority")
            tasks = [t for t in tasks if t.priority == wanted_priority]
        if epic_id is not None:
            tasks = [t for t in tasks if t.epic_id == epic_id]
        return tasks

    def list_ideas(
        self,
        status: TaskStatus | str | None = None,
        priority: Priority | str | None = None,
    ) -> list[IdeaOverview]:
        """List ideas with their epics and statistics, optionally filtered, in store order."""
        ideas = self.store.load_all_ideas()
        if status is not None:
            wanted_status = _coerce(TaskStatus, status, "status")
            ideas = [i for i in ideas if i.status == wanted_status]
        if priority is not None:
            wanted_priority = _coerce(Priority, priority, "priority")
            ideas = [i for i in ideas if i.priority == wanted_priority]

        all_epics = self.store.load_all_epics()
        all_tasks = self.store.load_all_tasks()
        overviews = []
        for idea in ideas:
            epics = epics_for_idea(idea, all_epics)
            epic_ids = {e.id for e in epics}
            tasks = [t for t in all_tasks if t.epic_id in epic_ids]
            overviews.append(
                IdeaOverview(
                    idea=idea, epics=epics, tasks=tasks, stats=summarize_idea(idea, epics, tasks)
                )
            )
        return overviews

    def list_epics(
        self,
        status: TaskStatus | str | None = None,
        priority: Priority | str | None = None,
        idea_id: str | None = None,
    ) -> list[EpicOverview]:
        """List epics with parent idea titles and statistics, optionally filtered."""
        epics = self.store.load_all_epics()
        if status is not None:
            wanted_status = _coerce(TaskStatus, status, "status")
            epics = [e for e in epics if e.status == wanted_status]
        if priority is not None:
            wanted_priority = _coerce(Priority, priority, "priority")
            epics = [e for e in epics if e.priority == wanted_priority]
        if idea_id is not None:
            epics = [e for e in epics if e.idea_id == idea_id]

        idea_titles = {i.id: i.title for i in self.store.load_all_ideas()}
        all_tasks = self.store.load_all_tasks()
        overviews = []
        for epic in epics:
            tasks = tasks_for_epic(epic, all_tasks)
            overviews.append(
                EpicOverview(
                    epic=epic,
                    idea_title=idea_titles.get(epic.idea_id),
                    tasks=tasks,
                    stats=summarize_epic(epic, tasks),
                )
            )
        return overviews

    def get_idea_overview(self, idea_id: str) -> IdeaOverview:
        """Idea with its epics, their tasks and statistics."""
        idea = self.get_idea(idea_id)
        epics = epics_for_idea(idea, self.store.load_all_epics())
        epic_ids = {e.id for e in epics}
        tasks = [t for t in self.store.load_all_tasks() if t.epic_id in epic_ids]
        return IdeaOverview(
            idea=idea,
            epics=epics,
            tasks=tasks,
            stats=summarize_idea(idea, epics, tasks),
        )

    def get_epic_overview(self, epic_id: str) -> EpicOverview:
        """Epic with its tasks and statistics."""
        epic = self.get_epic(epic_id)
        idea = self.store.load_idea(epic.idea_id)
        tasks = tasks_for_epic(epic, self.store.load_all_tasks())
        return EpicOverview(
            epic=epic,
            idea_title=idea.title if idea else None,
            tasks=tasks,
            stats=summarize_epic(epic, tasks),
        )

    def get_dependencies(self, task_id: str) -> DependencyReport:
        """Resolve a task's dependencies, its dependents and whether it can start."""
        task = self.get_task(task_id)
        graph = DependencyGraph(self.store.load_all_tasks())
        return DependencyReport(
            task=task,
            dependencies=graph.dependencies_of(task.id),
            missing=graph.missing_dependencies(task.id),
            unblocks=graph.direct_unblocks(task.id),
        )

    def next_task(self, priority: Priority | str | None = None) -> Task | None:
        """
        Recommend the next task to work on.

        Candidates are pending tasks whose existing dependencies are all
        done (dangling dependency IDs do not block). The most urgent
        priority wins, then the oldest ``created_at``, then the ID.

        Args:
            priority: Only consider tasks with this priority

        Returns:
            The recommended task, or None when nothing is ready
        """
        wanted = _coerce(Priority, priority, "priority") if priority is not None else None
        candidates = [
            t
            for t in DependencyGraph(self.store.load_all_tasks()).ready_tasks()
            if wanted is None or t.priority == wanted
        ]
        if not candidates:
            return None

        def _key(task: Task) -> tuple[int, float, str]:
            created = task.created_at.timestamp() if task.created_at else float("inf")
            return (task.priority.rank, created, task.id)

        return min(candidates, key=_key)


def get_service(project_dir: Path | None = None) -> TaskService:
    """
    Build the TaskService for the current project.

    Args:
        project_dir: Directory to start project discovery from (defaults to cwd)
    """
    return TaskService.from_config(project_dir)
