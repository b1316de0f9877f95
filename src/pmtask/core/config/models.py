"""
Configuration data models for pm.

These models define the structure of .pm.json and ~/.config/pm/config.json
files, with validation and type safety via Pydantic.
"""

from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class StorageConfig(BaseModel):
    """
    Where and how entities are persisted.
    """
    backend: Literal["json", "memory"] = Field(
        default="json",
        description="Entity store implementation"
    )
    data_dir: str = Field(
        default=".pm",
        description="Data directory, relative to the project root unless absolute"
    )

    def resolve_data_dir(self, project_dir: Path) -> Path:
        """Absolute data directory for *project_dir*."""
        path = Path(self.data_dir).expanduser()
        return path if path.is_absolute() else project_dir / path


class IdConfig(BaseModel):
    """
    Identifier prefixes.

    Entities are numbered from one project-wide counter and rendered as
    ``<PREFIX><separator><N>`` (e.g. ``TSK-5``).
    """
    idea: str = Field(default="IDEA", min_length=1)
    epic: str = Field(default="EPIC", min_length=1)
    task: str = Field(default="TSK", min_length=1)
    bug: str = Field(default="BUG", min_length=1)
    rnd: str = Field(default="RND", min_length=1)
    separator: str = Field(default="-", min_length=1)

    def format(self, kind: str, number: int) -> str:
        """Render an ID for entity kind *kind* ('idea', 'epic', 'task', 'bug', 'rnd')."""
        prefix = getattr(self, kind)
        return f"{prefix}{self.separator}{number}"


class ApprovalConfig(BaseModel):
    """
    Approval gate settings.

    When required, every mutating operation except starting work on a task
    must carry explicit approval.
    """
    required: bool = Field(
        default=True,
        description="Require _approval_confirmed on gated operations"
    )


class LifecycleConfig(BaseModel):
    """
    Task lifecycle rules.
    """
    reject_dependency_cycles: bool = Field(
        default=False,
        description="Fail dependency updates that would form a cycle (warn otherwise)"
    )


class LoggingConfig(BaseModel):
    """
    Structured event log settings.
    """
    events_enabled: bool = Field(
        default=True,
        description="Append task events to a JSONL file"
    )
    events_file: Optional[str] = Field(
        default=None,
        description="Event log path (defaults to <data_dir>/events.jsonl)"
    )


class PmConfig(BaseModel):
    """
    Top-level pm configuration.

    Loaded from defaults, user config, project config, and env vars.

    Example:
        >>> config = PmConfig(
        ...     storage=StorageConfig(backend="memory"),
        ...     approval=ApprovalConfig(required=False),
        ... )
        >>> config.approval.required
        False
    """
    storage: StorageConfig = Field(
        default_factory=StorageConfig,
        description="Entity storage"
    )
    ids: IdConfig = Field(
        default_factory=IdConfig,
        description="Identifier prefixes"
    )
    approval: ApprovalConfig = Field(
        default_factory=ApprovalConfig,
        description="Approval gate"
    )
    lifecycle: LifecycleConfig = Field(
        default_factory=LifecycleConfig,
        description="Task lifecycle rules"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Structured event log"
    )

    model_config = ConfigDict(
        extra="allow",  # Allow extra fields for forward compatibility
        validate_assignment=True,
    )

    @field_validator("storage", mode="before")
    @classmethod
    def validate_storage(cls, v: object) -> object:
        """Accept a bare backend name as shorthand (e.g. "storage": "memory")."""
        if isinstance(v, str):
            return {"backend": v}
        return v
