"""
Error taxonomy for task operations.

Exception Hierarchy:
    PmError (base)
    ├── TaskValidationError (malformed or out-of-enum input)
    │   └── DependencyCycleError (dependency set would form a cycle)
    ├── NotFoundError (referenced entity absent)
    │   └── DependencyNotFoundError (dependency list references a missing task)
    ├── PersistenceError (store read/write failure)
    └── ApprovalRequiredError (request needs explicit approval)

Example:
    >>> from pmtask.core.tasks.exceptions import NotFoundError
    >>> try:
    ...     raise NotFoundError("task", "TSK-404")
    ... except NotFoundError as e:
    ...     print(e)
    Task TSK-404 not found
"""

from dataclasses import dataclass


class PmError(Exception):
    """
    Base exception for all pm errors.

    Attributes:
        message: Human-readable error message
        context: Additional machine-readable context
    """

    def __init__(self, message: str, **context: object) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class FieldError:
    """One offending input field."""

    field: str
    message: str


class TaskValidationError(PmError):
    """
    Raised when a change request fails schema validation.

    Recoverable by the caller correcting the input.

    Attributes:
        errors: Every offending field with its message
    """

    def __init__(self, errors: list[FieldError], message: str | None = None) -> None:
        self.errors = list(errors)
        if message is None:
            details = "; ".join(f"{e.field}: {e.message}" for e in self.errors)
            message = f"Invalid request: {details}" if details else "Invalid request"
        super().__init__(message, fields=self.fields)

    @property
    def fields(self) -> list[str]:
        return [e.field for e in self.errors]


class DependencyCycleError(TaskValidationError):
    """Raised when cycle rejection is enabled and a dependency update would close a loop."""

    def __init__(self, task_id: str, cycle: list[str]) -> None:
        self.task_id = task_id
        self.cycle = cycle
        super().__init__(
            [FieldError("dependencies", f"would create cycle {' → '.join(cycle)}")],
            message=f"Dependencies for {task_id} would create a cycle: {' → '.join(cycle)}",
        )


class NotFoundError(PmError):
    """
    Raised when a referenced idea, epic or task does not exist.

    Attributes:
        entity_type: "idea", "epic" or "task"
        entity_id: The ID that did not resolve
    """

    def __init__(self, entity_type: str, entity_id: str, message: str | None = None) -> None:
        self.entity_type = entity_type
        self.entity_id = entity_id
        if message is None:
            message = f"{entity_type.capitalize()} {entity_id} not found"
        super().__init__(message, entity_type=entity_type, entity_id=entity_id)


class DependencyNotFoundError(NotFoundError):
    """
    Raised when a requested dependency ID does not resolve to a task.

    Kept distinct from NotFoundError on the primary ID: the fix is to the
    dependency list, not the task being updated.

    Attributes:
        task_id: Task whose dependency list was being changed (None while creating)
        missing_ids: Every requested dependency that does not exist
    """

    def __init__(self, task_id: str | None, missing_ids: list[str]) -> None:
        self.task_id = task_id
        self.missing_ids = list(missing_ids)
        noun = "task" if len(self.missing_ids) == 1 else "tasks"
        super().__init__(
            "task",
            self.missing_ids[0],
            message=f"Dependency {noun} with ID {', '.join(self.missing_ids)} not found",
        )
        self.context["missing_ids"] = self.missing_ids
        self.context["task_id"] = task_id


class PersistenceError(PmError):
    """
    Raised when the entity store cannot read or write a record.

    Surfaced as-is; retry policy belongs to the caller.
    """

    def __init__(self, message: str, path: str | None = None) -> None:
        self.path = path
        super().__init__(message, path=path)


class ApprovalRequiredError(PmError):
    """
    Raised when a mutating request is made without explicit approval.

    Attributes:
        operation: Name of the gated operation (e.g., "update_task")
    """

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(
            f'Approval required: "{operation}" changes project state. '
            "Propose the change, wait for explicit approval, then retry with "
            "_approval_confirmed set to true.",
            operation=operation,
        )
