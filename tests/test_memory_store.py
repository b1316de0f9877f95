"""Unit tests for the in-memory entity store."""

from pmtask.core.tasks.memory import MemoryStore
from pmtask.core.tasks.models import Task, TaskStatus
from pmtask.core.tasks.store import EntityStore, get_store


class TestMemoryStore:
    def test_satisfies_protocol(self):
        store = MemoryStore()
        assert isinstance(store, EntityStore)
        assert store.store_name == "memory"

    def test_registered(self):
        assert isinstance(get_store("memory"), MemoryStore)

    def test_absent_records_are_none(self):
        store = MemoryStore()
        assert store.load_task("TSK-1") is None
        assert store.load_epic("EPIC-1") is None
        assert store.load_idea("IDEA-1") is None

    def test_loads_are_copies(self, memory_store):
        task = memory_store.load_task("TSK-9")
        task.status = TaskStatus.DONE
        task.dependencies.append("TSK-1")

        fresh = memory_store.load_task("TSK-9")
        assert fresh.status == TaskStatus.PENDING
        assert fresh.dependencies == []

    def test_saves_are_copies(self):
        store = MemoryStore()
        task = Task(id="TSK-1", epic_id="EPIC-2", title="x")
        store.save_task(task)
        task.title = "changed after save"
        assert store.load_task("TSK-1").title == "x"

    def test_seed_copies_input(self, sample_tasks):
        store = MemoryStore(tasks=sample_tasks)
        sample_tasks[0].title = "mutated"
        assert store.load_task("TSK-1").title == "Define schema"

    def test_load_all_preserves_insertion_order(self, memory_store):
        assert [t.id for t in memory_store.load_all_tasks()] == ["TSK-1", "TSK-3", "TSK-9"]
        assert [e.id for e in memory_store.load_all_epics()] == ["EPIC-2"]
        assert [i.id for i in memory_store.load_all_ideas()] == ["IDEA-1"]


class TestNextId:
    def test_starts_at_one(self):
        assert MemoryStore().next_id() == 1

    def test_continues_after_seeded_ids(self, memory_store):
        assert memory_store.next_id() == 10

    def test_ignores_non_numeric_suffixes(self):
        store = MemoryStore(tasks=[Task(id="custom", epic_id="EPIC-2", title="x")])
        assert store.next_id() == 1
