"""
Entity models for pm.

Defines the Idea → Epic → Task hierarchy, the append-only ProgressNote,
and the closed enumerations for status, priority, task type and progress
type. Records are serialized with camelCase aliases (``epicId``,
``progressNotes``) and accept either spelling on input.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class TaskStatus(str, Enum):
    """Lifecycle status shared by ideas, epics and tasks."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    DONE = "done"
    BLOCKED = "blocked"
    DEFERRED = "deferred"


class Priority(str, Enum):
    """Priority levels.

    Declared lowest first; use ``rank`` for sorting (high sorts first).
    """

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        """Sort key where 0 is the most urgent."""
        return {Priority.HIGH: 0, Priority.MEDIUM: 1, Priority.LOW: 2}[self]


class TaskType(str, Enum):
    """Task category."""

    TASK = "task"
    BUG = "bug"
    RND = "rnd"


class ProgressType(str, Enum):
    """Kind of progress note."""

    UPDATE = "update"
    COMMENT = "comment"
    BLOCKER = "blocker"
    COMPLETION = "completion"


class ProgressNote(BaseModel):
    """
    A timestamped annotation on a task's history.

    Notes are frozen: once appended to a task they are never edited or
    removed.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., description="Note identifier, unique within its task (PRG-<millis>)")
    task_id: str = Field(..., alias="taskId", description="Owning task ID")
    content: str = Field(..., description="Free-text note body")
    type: ProgressType = Field(default=ProgressType.UPDATE, description="Kind of note")
    timestamp: datetime = Field(..., description="When the note was appended")


class Idea(BaseModel):
    """
    Top-level initiative containing epics.

    Epics are referenced by ID only; the idea does not own epic records.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Idea identifier (e.g., 'IDEA-1')")
    title: str = Field(..., min_length=1)
    description: str = ""
    status: TaskStatus = TaskStatus.PENDING
    priority: Priority = Priority.MEDIUM
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")
    epic_ids: list[str] = Field(
        default_factory=list,
        alias="epicIds",
        description="Ordered IDs of the epics belonging to this idea",
    )


class Epic(BaseModel):
    """A grouping of tasks within an idea."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Epic identifier (e.g., 'EPIC-2')")
    idea_id: str = Field(..., alias="ideaId", description="Owning idea ID (non-owning reference)")
    title: str = Field(..., min_length=1)
    description: str = ""
    status: TaskStatus = TaskStatus.PENDING
    priority: Priority = Priority.MEDIUM
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")


class Task(BaseModel):
    """
    The unit of trackable work.

    Example:
        >>> task = Task(id="TSK-9", epic_id="EPIC-2", title="Wire up storage")
        >>> task.status
        <TaskStatus.PENDING: 'pending'>
        >>> task.progress_notes
        ()
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Task identifier (e.g., 'TSK-5')")
    epic_id: str = Field(..., alias="epicId", description="Owning epic ID (non-owning reference)")
    title: str = Field(..., min_length=1)
    description: str = ""
    type: TaskType = TaskType.TASK
    status: TaskStatus = TaskStatus.PENDING
    priority: Priority = Priority.MEDIUM
    dependencies: list[str] = Field(
        default_factory=list,
        description="IDs of tasks that must be done before this one",
    )
    progress_notes: tuple[ProgressNote, ...] = Field(
        default=(),
        alias="progressNotes",
        description="Append-only progress history, oldest first",
    )
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")

    @property
    def is_done(self) -> bool:
        return self.status == TaskStatus.DONE

    def append_progress_note(self, note: ProgressNote) -> None:
        """Append a note to the end of the history.

        Raises:
            ValueError: If the note belongs to another task or reuses an ID
        """
        if note.task_id != self.id:
            raise ValueError(f"Progress note {note.id} belongs to {note.task_id}, not {self.id}")
        if any(existing.id == note.id for existing in self.progress_notes):
            raise ValueError(f"Progress note {note.id} already exists on {self.id}")
        self.progress_notes = self.progress_notes + (note,)

    def note_ids(self) -> set[str]:
        return {note.id for note in self.progress_notes}
