"""
Tests for task change request validation.

Covers the three states of optional fields, enum checks, dependency
normalization and how pydantic errors map onto TaskValidationError.
"""

import pytest
from pydantic import ValidationError

from pmtask.core.tasks.exceptions import TaskValidationError
from pmtask.core.tasks.models import Priority, ProgressType, TaskStatus
from pmtask.core.tasks.validation import (
    EpicUpdateRequest,
    IdeaUpdateRequest,
    TaskUpdateRequest,
    validate_request,
    validate_update_request,
)


class TestValidRequests:
    def test_minimal_request(self):
        req = validate_update_request({"taskId": "TSK-9"})
        assert req.task_id == "TSK-9"
        assert req.requested_fields == []
        assert req.approval_confirmed is False

    def test_enums_are_parsed(self):
        req = validate_update_request(
            {
                "taskId": "TSK-9",
                "status": "in-progress",
                "priority": "high",
                "progressNote": "Starting",
                "progressType": "blocker",
            }
        )
        assert req.status == TaskStatus.IN_PROGRESS
        assert req.priority == Priority.HIGH
        assert req.progress_type == ProgressType.BLOCKER

    def test_snake_case_names_accepted(self):
        req = validate_update_request({"task_id": "TSK-9", "progress_note": "hi"})
        assert req.progress_note == "hi"

    def test_requested_fields_in_changelog_order(self):
        req = validate_update_request(
            {"taskId": "TSK-9", "progressNote": "n", "title": "t", "status": "done"}
        )
        assert req.requested_fields == ["status", "title", "progress_note"]

    @pytest.mark.parametrize("value", [True, "true"])
    def test_approval_flag(self, value):
        req = validate_update_request({"taskId": "TSK-9", "_approval_confirmed": value})
        assert req.approval_confirmed is True


class TestDependencies:
    def test_absent_vs_empty(self):
        absent = validate_update_request({"taskId": "TSK-9"})
        cleared = validate_update_request({"taskId": "TSK-9", "dependencies": []})
        assert not absent.is_set("dependencies")
        assert cleared.is_set("dependencies")
        assert cleared.dependencies == []

    def test_duplicates_collapsed_in_order(self):
        req = validate_update_request(
            {"taskId": "TSK-9", "dependencies": ["TSK-2", "TSK-1", "TSK-2"]}
        )
        assert req.dependencies == ["TSK-2", "TSK-1"]

    def test_self_dependency_rejected(self):
        with pytest.raises(TaskValidationError) as exc_info:
            validate_update_request({"taskId": "TSK-9", "dependencies": ["TSK-9"]})
        assert exc_info.value.fields == ["dependencies"]

    def test_blank_dependency_rejected(self):
        with pytest.raises(TaskValidationError):
            validate_update_request({"taskId": "TSK-9", "dependencies": ["  "]})


class TestProgressNote:
    def test_blank_note_means_no_note(self):
        req = validate_update_request({"taskId": "TSK-9", "progressNote": "   "})
        assert req.progress_note is None
        assert not req.is_set("progress_note")


class TestInvalidRequests:
    def test_missing_task_id(self):
        with pytest.raises(TaskValidationError) as exc_info:
            validate_update_request({"status": "done"})
        assert "taskId" in exc_info.value.fields

    def test_blank_task_id(self):
        with pytest.raises(TaskValidationError):
            validate_update_request({"taskId": "   "})

    def test_unknown_status(self):
        with pytest.raises(TaskValidationError) as exc_info:
            validate_update_request({"taskId": "TSK-9", "status": "closed"})
        assert exc_info.value.fields == ["status"]

    def test_every_bad_field_reported(self):
        with pytest.raises(TaskValidationError) as exc_info:
            validate_update_request({"taskId": "TSK-9", "status": "closed", "priority": "urgent"})
        assert set(exc_info.value.fields) == {"status", "priority"}
        assert "status" in str(exc_info.value)

    def test_unknown_field_rejected(self):
        with pytest.raises(TaskValidationError) as exc_info:
            validate_update_request({"taskId": "TSK-9", "assignee": "bot"})
        assert exc_info.value.fields == ["assignee"]

    def test_empty_title_rejected(self):
        with pytest.raises(TaskValidationError) as exc_info:
            validate_update_request({"taskId": "TSK-9", "title": ""})
        assert exc_info.value.fields == ["title"]

    @pytest.mark.parametrize("title", ["   ", "\t\n"])
    def test_whitespace_title_rejected(self, title):
        with pytest.raises(TaskValidationError) as exc_info:
            validate_update_request({"taskId": "TSK-9", "title": title})
        assert exc_info.value.fields == ["title"]

    def test_non_mapping_rejected(self):
        with pytest.raises(TaskValidationError) as exc_info:
            validate_update_request(["TSK-9"])  # type: ignore[arg-type]
        assert exc_info.value.fields == ["request"]


class TestRequestModel:
    def test_frozen(self):
        req = TaskUpdateRequest(task_id="TSK-9")
        with pytest.raises(ValidationError):
            req.status = TaskStatus.DONE

    def test_empty_description_is_a_value(self):
        req = validate_update_request({"taskId": "TSK-9", "description": ""})
        assert req.is_set("description")
        assert req.description == ""

    def test_title_is_trimmed(self):
        req = validate_update_request({"taskId": "TSK-9", "title": "  Wire up storage  "})
        assert req.title == "Wire up storage"


class TestIdeaAndEpicRequests:
    def test_idea_request(self):
        req = validate_request(IdeaUpdateRequest, {"ideaId": "IDEA-1", "status": "done"})
        assert req.entity_id == "IDEA-1"
        assert req.requested_fields == ["status"]

    def test_epic_request(self):
        req = validate_request(EpicUpdateRequest, {"epicId": "EPIC-2", "title": " Storage "})
        assert req.entity_id == "EPIC-2"
        assert req.title == "Storage"

    def test_task_only_fields_rejected(self):
        with pytest.raises(TaskValidationError) as exc_info:
            validate_request(IdeaUpdateRequest, {"ideaId": "IDEA-1", "dependencies": []})
        assert exc_info.value.fields == ["dependencies"]

    def test_blank_idea_title_rejected(self):
        with pytest.raises(TaskValidationError) as exc_info:
            validate_request(IdeaUpdateRequest, {"ideaId": "IDEA-1", "title": "  "})
        assert exc_info.value.fields == ["title"]

    def test_missing_epic_id(self):
        with pytest.raises(TaskValidationError) as exc_info:
            validate_request(EpicUpdateRequest, {"status": "done"})
        assert exc_info.value.fields == ["epicId"]
