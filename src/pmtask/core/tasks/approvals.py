"""
Approval gate for mutating requests.

Most operations that change project state require the calling agent to
propose the change, get explicit user approval, and retry with
``_approval_confirmed``. Starting work (moving an idea, epic or task to
``in-progress``, optionally with a progress note) is exempt so agents can
pick up work without a round trip.

The gate is a caller-side policy: it runs on a validated request before the
lifecycle engine is invoked and never touches storage.

Example:
    >>> policy = ApprovalPolicy(required=True)
    >>> start = TaskUpdateRequest(task_id="TSK-9", status=TaskStatus.IN_PROGRESS)
    >>> policy.requires_approval(start)
    False
    >>> bump = TaskUpdateRequest(task_id="TSK-9", priority=Priority.HIGH)
    >>> policy.requires_approval(bump)
    True
"""

import logging

from .exceptions import ApprovalRequiredError
from .models import TaskStatus
from .validation import EntityUpdateRequest

logger = logging.getLogger(__name__)

# Fields that may accompany a start-work transition without losing the exemption
_START_WORK_COMPANIONS = {"status", "progress_note"}

UPDATE_TASK = "update_task"
UPDATE_EPIC = "update_epic"
UPDATE_IDEA = "update_idea"


def is_gate_exempt(request: EntityUpdateRequest) -> bool:
    """
    True if *request* is a start-work transition.

    A request is exempt when it sets ``status`` to ``in-progress`` and
    changes nothing else besides an optional progress note. The same shape
    applies to ideas and epics, which carry no notes. Exemption depends
    only on the request's shape, never on the current record.
    """
    if request.status != TaskStatus.IN_PROGRESS:
        return False
    return set(request.requested_fields) <= _START_WORK_COMPANIONS


class ApprovalPolicy:
    """
    Decides whether a request needs approval and enforces it.

    Attributes:
        required: When False the gate is disabled and nothing is checked
    """

    def __init__(self, required: bool = True) -> None:
        self.required = required

    def requires_approval(self, request: EntityUpdateRequest) -> bool:
        """Check if an update request must carry approval."""
        if not self.required:
            return False
        return not is_gate_exempt(request)

    def check(self, request: EntityUpdateRequest, operation: str = UPDATE_TASK) -> None:
        """
        Enforce the gate for an update request.

        Raises:
            ApprovalRequiredError: If approval is required and not confirmed
        """
        if self.requires_approval(request) and not request.approval_confirmed:
            logger.info("Rejected %s for %s: approval not confirmed", operation, request.entity_id)
            raise ApprovalRequiredError(operation)

    def check_operation(self, operation: str, approval_confirmed: bool) -> None:
        """
        Enforce the gate for a non-update operation (create_task, create_epic, ...).

        Raises:
            ApprovalRequiredError: If approval is required and not confirmed
        """
        if self.required and not approval_confirmed:
            logger.info("Rejected %s: approval not confirmed", operation)
            raise ApprovalRequiredError(operation)
