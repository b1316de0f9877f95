"""
Task management models, storage and lifecycle.

This module provides the Idea → Epic → Task data models, the EntityStore
protocol with its pluggable implementations, request validation, the
approval gate, the lifecycle engine for tasks, epics and ideas, and
read-only aggregation.
"""

from .approvals import ApprovalPolicy, is_gate_exempt
from .exceptions import (
    ApprovalRequiredError,
    DependencyCycleError,
    DependencyNotFoundError,
    FieldError,
    NotFoundError,
    PersistenceError,
    PmError,
    TaskValidationError,
)
from .graph import DependencyGraph
from .lifecycle import (
    ChangeLog,
    EntityUpdateResult,
    FieldChange,
    TaskContext,
    TaskLifecycleEngine,
    TaskUpdateResult,
)
from .models import Epic, Idea, Priority, ProgressNote, ProgressType, Task, TaskStatus, TaskType
from .service import DependencyReport, EpicOverview, IdeaOverview, TaskService, get_service
from .stats import (
    CompletionRatio,
    EpicStatistics,
    IdeaStatistics,
    completion_ratio,
    priority_breakdown,
    status_breakdown,
)
from .store import EntityStore, get_store, list_stores, register_store
from .validation import (
    EntityUpdateRequest,
    EpicUpdateRequest,
    IdeaUpdateRequest,
    TaskUpdateRequest,
    validate_request,
    validate_update_request,
)

# Import store implementations to trigger registration
from . import json, memory  # noqa: F401, E402

__all__ = [
    # Models
    "Idea",
    "Epic",
    "Task",
    "ProgressNote",
    "TaskStatus",
    "Priority",
    "TaskType",
    "ProgressType",
    # Store protocol and registry
    "EntityStore",
    "register_store",
    "get_store",
    "list_stores",
    # Errors
    "PmError",
    "FieldError",
    "TaskValidationError",
    "DependencyCycleError",
    "NotFoundError",
    "DependencyNotFoundError",
    "PersistenceError",
    "ApprovalRequiredError",
    # Validation and approval
    "EntityUpdateRequest",
    "IdeaUpdateRequest",
    "EpicUpdateRequest",
    "TaskUpdateRequest",
    "validate_request",
    "validate_update_request",
    "ApprovalPolicy",
    "is_gate_exempt",
    # Lifecycle
    "TaskLifecycleEngine",
    "TaskUpdateResult",
    "EntityUpdateResult",
    "TaskContext",
    "ChangeLog",
    "FieldChange",
    "DependencyGraph",
    # Aggregation
    "CompletionRatio",
    "IdeaStatistics",
    "EpicStatistics",
    "completion_ratio",
    "status_breakdown",
    "priority_breakdown",
    # Service
    "TaskService",
    "DependencyReport",
    "IdeaOverview",
    "EpicOverview",
    "get_service",
]
