"""
Unit tests for Pydantic models.

Tests validation, alias handling, serialization and the append-only
progress history on Task.
"""

import json
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from pmtask.core.tasks.models import (
    Epic,
    Idea,
    Priority,
    ProgressNote,
    ProgressType,
    Task,
    TaskStatus,
    TaskType,
)

STAMP = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


# ==============================================================================
# Task Model Tests
# ==============================================================================


class TestTaskModel:
    """Test Task model validation and behavior."""

    def test_minimal_task_creation(self):
        """Test creating a task with minimal required fields."""
        task = Task(id="TSK-5", epic_id="EPIC-2", title="Test task")
        assert task.id == "TSK-5"
        assert task.status == TaskStatus.PENDING
        assert task.priority == Priority.MEDIUM
        assert task.type == TaskType.TASK
        assert task.dependencies == []
        assert task.progress_notes == ()
        assert task.description == ""

    def test_accepts_camel_case_aliases(self):
        """Test that stored camelCase records validate."""
        task = Task.model_validate(
            {
                "id": "TSK-5",
                "epicId": "EPIC-2",
                "title": "Aliased",
                "status": "in-progress",
                "createdAt": "2026-01-15T12:00:00Z",
                "progressNotes": [
                    {
                        "id": "PRG-1",
                        "taskId": "TSK-5",
                        "content": "Started",
                        "type": "update",
                        "timestamp": "2026-01-15T12:00:00Z",
                    }
                ],
            }
        )
        assert task.epic_id == "EPIC-2"
        assert task.status == TaskStatus.IN_PROGRESS
        assert task.created_at == STAMP
        assert task.progress_notes[0].content == "Started"

    def test_serializes_with_aliases(self):
        """Test JSON dump uses camelCase keys."""
        task = Task(id="TSK-5", epic_id="EPIC-2", title="Dump me", created_at=STAMP)
        data = json.loads(task.model_dump_json(by_alias=True))
        assert data["epicId"] == "EPIC-2"
        assert data["progressNotes"] == []
        assert data["status"] == "pending"

    def test_invalid_status_rejected(self):
        with pytest.raises(ValidationError):
            Task(id="TSK-5", epic_id="EPIC-2", title="Bad", status="closed")

    def test_invalid_type_rejected(self):
        with pytest.raises(ValidationError):
            Task(id="TSK-5", epic_id="EPIC-2", title="Bad", type="feature")

    def test_empty_title_rejected(self):
        with pytest.raises(ValidationError):
            Task(id="TSK-5", epic_id="EPIC-2", title="")

    def test_is_done(self):
        assert Task(id="T-1", epic_id="E-1", title="x", status=TaskStatus.DONE).is_done
        assert not Task(id="T-1", epic_id="E-1", title="x").is_done


class TestProgressHistory:
    """Test append-only progress notes."""

    def _note(self, note_id: str, task_id: str = "TSK-5", content: str = "note") -> ProgressNote:
        return ProgressNote(id=note_id, task_id=task_id, content=content, timestamp=STAMP)

    def test_append_keeps_prior_notes(self):
        task = Task(id="TSK-5", epic_id="EPIC-2", title="History")
        first = self._note("PRG-1", content="first")
        task.append_progress_note(first)
        task.append_progress_note(self._note("PRG-2", content="second"))

        assert len(task.progress_notes) == 2
        assert task.progress_notes[0] is first
        assert task.progress_notes[1].content == "second"

    def test_append_rejects_other_task(self):
        task = Task(id="TSK-5", epic_id="EPIC-2", title="History")
        with pytest.raises(ValueError, match="belongs to"):
            task.append_progress_note(self._note("PRG-1", task_id="TSK-6"))

    def test_append_rejects_duplicate_id(self):
        task = Task(id="TSK-5", epic_id="EPIC-2", title="History")
        task.append_progress_note(self._note("PRG-1"))
        with pytest.raises(ValueError, match="already exists"):
            task.append_progress_note(self._note("PRG-1"))
        assert len(task.progress_notes) == 1

    def test_notes_are_frozen(self):
        note = self._note("PRG-1")
        with pytest.raises(ValidationError):
            note.content = "edited"

    def test_default_note_type(self):
        assert self._note("PRG-1").type == ProgressType.UPDATE

    def test_note_ids(self):
        task = Task(id="TSK-5", epic_id="EPIC-2", title="History")
        task.append_progress_note(self._note("PRG-1"))
        task.append_progress_note(self._note("PRG-2"))
        assert task.note_ids() == {"PRG-1", "PRG-2"}


# ==============================================================================
# Idea / Epic Model Tests
# ==============================================================================


class TestIdeaAndEpic:
    def test_idea_defaults(self):
        idea = Idea(id="IDEA-1", title="Offline mode")
        assert idea.status == TaskStatus.PENDING
        assert idea.epic_ids == []

    def test_idea_epic_ids_alias(self):
        idea = Idea.model_validate({"id": "IDEA-1", "title": "x", "epicIds": ["EPIC-2"]})
        assert idea.epic_ids == ["EPIC-2"]
        assert idea.model_dump(by_alias=True)["epicIds"] == ["EPIC-2"]

    def test_epic_requires_idea(self):
        with pytest.raises(ValidationError):
            Epic(id="EPIC-2", title="No parent")

    def test_epic_idea_alias(self):
        epic = Epic.model_validate({"id": "EPIC-2", "ideaId": "IDEA-1", "title": "x"})
        assert epic.idea_id == "IDEA-1"


class TestPriority:
    def test_rank_orders_high_first(self):
        ordered = sorted([Priority.LOW, Priority.HIGH, Priority.MEDIUM], key=lambda p: p.rank)
        assert ordered == [Priority.HIGH, Priority.MEDIUM, Priority.LOW]

    def test_enum_values(self):
        assert [p.value for p in Priority] == ["low", "medium", "high"]
        assert [s.value for s in TaskStatus] == [
            "pending",
            "in-progress",
            "done",
            "blocked",
            "deferred",
        ]
