"""
Pytest configuration and shared fixtures.

Provides fixtures for temp project directories, a fixed clock, a seeded
in-memory store (IDEA-1 → EPIC-2 → TSK-1/TSK-3/TSK-9) and a JSON store
in a temp data directory.
"""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from pmtask.core.config import clear_cache
from pmtask.core.config.models import ApprovalConfig, PmConfig
from pmtask.core.tasks.json import JsonStore
from pmtask.core.tasks.memory import MemoryStore
from pmtask.core.tasks.models import Epic, Idea, Priority, Task, TaskStatus, TaskType
from pmtask.core.tasks.service import TaskService

# ==============================================================================
# Time Fixtures
# ==============================================================================

CREATED = datetime(2026, 1, 10, 9, 0, tzinfo=timezone.utc)
NOW = datetime(2026, 1, 15, 12, 34, 56, tzinfo=timezone.utc)


class FakeClock:
    """Deterministic clock; call ``advance`` to move time forward."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    """Provide a clock fixed at NOW."""
    return FakeClock()


# ==============================================================================
# Directory Fixtures
# ==============================================================================


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """
    Provide a temporary project directory.

    Creates:
    - .pm/ data directory
    - .git/ directory
    """
    project = tmp_path / "project"
    project.mkdir()
    (project / ".pm").mkdir()
    (project / ".git").mkdir()
    return project


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Keep user config, PM_* env vars and the config cache out of every test."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    for var in ("PM_BACKEND", "PM_DATA_DIR", "PM_REQUIRE_APPROVAL", "PM_REJECT_CYCLES"):
        monkeypatch.delenv(var, raising=False)
    clear_cache()
    yield
    clear_cache()


# ==============================================================================
# Sample Data Fixtures
# ==============================================================================


@pytest.fixture
def sample_idea() -> Idea:
    return Idea(
        id="IDEA-1",
        title="Offline mode",
        description="Let agents work without a network",
        priority=Priority.HIGH,
        created_at=CREATED,
        updated_at=CREATED,
        epic_ids=["EPIC-2"],
    )


@pytest.fixture
def sample_epic() -> Epic:
    return Epic(
        id="EPIC-2",
        idea_id="IDEA-1",
        title="Storage layer",
        created_at=CREATED,
        updated_at=CREATED,
    )


@pytest.fixture
def sample_tasks() -> list[Task]:
    """TSK-1 (done), TSK-3 (pending, high) and TSK-9 (pending, medium)."""
    return [
        Task(
            id="TSK-1",
            epic_id="EPIC-2",
            title="Define schema",
            status=TaskStatus.DONE,
            priority=Priority.HIGH,
            created_at=CREATED,
            updated_at=CREATED,
        ),
        Task(
            id="TSK-3",
            epic_id="EPIC-2",
            title="Write migrations",
            type=TaskType.TASK,
            priority=Priority.HIGH,
            dependencies=["TSK-1"],
            created_at=CREATED + timedelta(hours=1),
            updated_at=CREATED + timedelta(hours=1),
        ),
        Task(
            id="TSK-9",
            epic_id="EPIC-2",
            title="Wire up storage",
            description="Connect the store to the CLI",
            created_at=CREATED + timedelta(hours=2),
            updated_at=CREATED + timedelta(hours=2),
        ),
    ]


@pytest.fixture
def memory_store(sample_idea: Idea, sample_epic: Epic, sample_tasks: list[Task]) -> MemoryStore:
    """Provide an in-memory store seeded with the sample hierarchy."""
    return MemoryStore(ideas=[sample_idea], epics=[sample_epic], tasks=sample_tasks)


@pytest.fixture
def json_store(project_dir: Path) -> JsonStore:
    """Provide an empty JSON store in the temp project's data directory."""
    return JsonStore(data_dir=project_dir / ".pm")


@pytest.fixture
def seeded_json_store(
    json_store: JsonStore, sample_idea: Idea, sample_epic: Epic, sample_tasks: list[Task]
) -> JsonStore:
    """Provide a JSON store holding the sample hierarchy."""
    json_store.save_idea(sample_idea)
    json_store.save_epic(sample_epic)
    for task in sample_tasks:
        json_store.save_task(task)
    return json_store


@pytest.fixture
def service(memory_store: MemoryStore, clock: FakeClock) -> TaskService:
    """Provide a TaskService over the seeded memory store with the gate enabled."""
    config = PmConfig(approval=ApprovalConfig(required=True))
    return TaskService(memory_store, config=config, clock=clock)
