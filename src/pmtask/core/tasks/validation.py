"""
Schema validation for idea, epic and task change requests.

Turns a raw, untyped mapping (as received from an agent tool call or the
CLI) into a typed request model, or raises TaskValidationError naming
every offending field. Validation never touches storage.
"""

from collections.abc import Mapping
from typing import Any, ClassVar, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator

from .exceptions import FieldError, TaskValidationError
from .models import Priority, ProgressType, TaskStatus

RequestT = TypeVar("RequestT", bound="EntityUpdateRequest")


class EntityUpdateRequest(BaseModel):
    """
    Fields every change request shares.

    Each optional field has three states: absent (no change requested),
    present with the current value (a no-op), or present with a new value.
    Use ``is_set`` rather than truthiness to tell them apart.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

    # Fields that describe a change to the record, in ChangeLog order
    change_fields: ClassVar[tuple[str, ...]] = ("status", "priority", "title", "description")

    status: TaskStatus | None = None
    priority: Priority | None = None
    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    approval_confirmed: bool = Field(
        default=False,
        alias="_approval_confirmed",
        description="Caller asserts the user approved this change",
    )

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str | None) -> str | None:
        """Trim surrounding whitespace; a blank title is an error."""
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @property
    def entity_id(self) -> str:
        raise NotImplementedError

    def is_set(self, name: str) -> bool:
        """True when the caller supplied a value for *name*."""
        return name in self.model_fields_set and getattr(self, name) is not None

    @property
    def requested_fields(self) -> list[str]:
        """Change fields present in this request, in ChangeLog order."""
        return [name for name in self.change_fields if self.is_set(name)]


class IdeaUpdateRequest(EntityUpdateRequest):
    """A validated request to change one idea."""

    idea_id: str = Field(..., alias="ideaId", min_length=1, description="Idea to update")

    @property
    def entity_id(self) -> str:
        return self.idea_id


class EpicUpdateRequest(EntityUpdateRequest):
    """A validated request to change one epic."""

    epic_id: str = Field(..., alias="epicId", min_length=1, description="Epic to update")

    @property
    def entity_id(self) -> str:
        return self.epic_id


class TaskUpdateRequest(EntityUpdateRequest):
    """
    A validated request to change one task.

    ``dependencies=[]`` is an explicit request to clear all dependencies
    and differs from omitting the field.

    Example:
        >>> req = TaskUpdateRequest.model_validate(
        ...     {"taskId": "TSK-9", "status": "in-progress", "dependencies": []}
        ... )
        >>> req.is_set("dependencies"), req.is_set("priority")
        (True, False)
    """

    change_fields: ClassVar[tuple[str, ...]] = (
        "status",
        "priority",
        "title",
        "description",
        "dependencies",
        "progress_note",
    )

    task_id: str = Field(..., alias="taskId", min_length=1, description="Task to update")
    dependencies: list[str] | None = Field(
        default=None, description="Complete replacement dependency set"
    )
    progress_note: str | None = Field(default=None, alias="progressNote")
    progress_type: ProgressType | None = Field(default=None, alias="progressType")

    @field_validator("task_id")
    @classmethod
    def validate_task_id(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must be a non-empty task ID")
        return v

    @field_validator("progress_note")
    @classmethod
    def normalize_progress_note(cls, v: str | None) -> str | None:
        """Blank note text means no note."""
        if v is not None and not v.strip():
            return None
        return v

    @field_validator("dependencies")
    @classmethod
    def validate_dependencies(cls, v: list[str] | None, info: ValidationInfo) -> list[str] | None:
        """Reject blank and self references, collapse duplicates keeping first occurrence."""
        if v is None:
            return v
        unique: list[str] = []
        for dep_id in v:
            if not dep_id.strip():
                raise ValueError("dependency IDs must be non-empty")
            if dep_id == info.data.get("task_id"):
                raise ValueError(f"task {dep_id} cannot depend on itself")
            if dep_id not in unique:
                unique.append(dep_id)
        return unique

    @property
    def entity_id(self) -> str:
        return self.task_id


def _field_name(loc: tuple[Any, ...]) -> str:
    if not loc:
        return "request"
    return ".".join(str(part) for part in loc)


def validate_request(model: type[RequestT], raw: Mapping[str, Any]) -> RequestT:
    """
    Validate a raw change request against *model*.

    Raises:
        TaskValidationError: Listing every offending field
    """
    if not isinstance(raw, Mapping):
        raise TaskValidationError([FieldError("request", "must be an object")])
    try:
        return model.model_validate(dict(raw))
    except ValidationError as e:
        errors = [FieldError(_field_name(err["loc"]), err["msg"]) for err in e.errors()]
        raise TaskValidationError(errors) from e


def validate_update_request(raw: Mapping[str, Any]) -> TaskUpdateRequest:
    """
    Validate a raw task change request.

    Args:
        raw: Untyped mapping, e.g. tool-call arguments

    Returns:
        Fully typed TaskUpdateRequest

    Raises:
        TaskValidationError: Listing every offending field
    """
    return validate_request(TaskUpdateRequest, raw)
