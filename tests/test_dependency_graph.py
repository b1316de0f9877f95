"""Tests for DependencyGraph, the pure query object for dependency analysis."""

from __future__ import annotations

from pmtask.core.tasks.graph import DependencyGraph
from pmtask.core.tasks.models import Task, TaskStatus

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _task(
    tid: str,
    dependencies: list[str] | None = None,
    status: TaskStatus = TaskStatus.PENDING,
) -> Task:
    """Shorthand for creating a minimal Task."""
    return Task(
        id=tid,
        epic_id="EPIC-1",
        title=f"Task {tid}",
        status=status,
        dependencies=dependencies or [],
    )


def _chain() -> list[Task]:
    """A ← B ← C (C depends on B, B depends on A); A is done."""
    return [
        _task("A", status=TaskStatus.DONE),
        _task("B", ["A"]),
        _task("C", ["B"]),
    ]


# ---------------------------------------------------------------------------
# Topology: empty graph
# ---------------------------------------------------------------------------


class TestEmptyGraph:
    def test_direct_unblocks_empty(self) -> None:
        assert DependencyGraph([]).direct_unblocks("x") == []

    def test_ready_tasks_empty(self) -> None:
        assert DependencyGraph([]).ready_tasks() == []

    def test_dependencies_of_unknown_task(self) -> None:
        assert DependencyGraph([]).dependencies_of("x") == []


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


class TestChain:
    def test_dependencies_of(self) -> None:
        g = DependencyGraph(_chain())
        assert [t.id for t in g.dependencies_of("C")] == ["B"]

    def test_direct_unblocks(self) -> None:
        g = DependencyGraph(_chain())
        assert g.direct_unblocks("A") == ["B"]

    def test_ready_tasks(self) -> None:
        g = DependencyGraph(_chain())
        assert [t.id for t in g.ready_tasks()] == ["B"]
        assert g.is_ready("B")
        assert not g.is_ready("C")

    def test_dependencies_in_declaration_order(self) -> None:
        g = DependencyGraph([_task("A"), _task("B"), _task("C", ["B", "A"])])
        assert [t.id for t in g.dependencies_of("C")] == ["B", "A"]


class TestDanglingReferences:
    def test_missing_dependency_is_ignored(self) -> None:
        g = DependencyGraph([_task("A", ["GHOST"])])
        assert g.is_ready("A")
        assert g.dependencies_of("A") == []
        assert g.missing_dependencies("A") == ["GHOST"]

    def test_dangling_reference_does_not_block_readiness(self) -> None:
        g = DependencyGraph([_task("A", ["GHOST"]), _task("B", ["A"])])
        assert [t.id for t in g.ready_tasks()] == ["A"]


# ---------------------------------------------------------------------------
# Cycles
# ---------------------------------------------------------------------------


class TestCycles:
    def test_path(self) -> None:
        g = DependencyGraph(_chain())
        assert g.path("C", "A") == ["C", "B", "A"]
        assert g.path("A", "C") is None

    def test_cycle_with_closing_edge(self) -> None:
        g = DependencyGraph(_chain())
        assert g.cycle_with("A", ["C"]) == ["A", "C", "B", "A"]

    def test_cycle_with_safe_edge(self) -> None:
        g = DependencyGraph(_chain())
        assert g.cycle_with("C", ["A"]) is None

    def test_cycle_with_self(self) -> None:
        assert DependencyGraph(_chain()).cycle_with("B", ["B"]) == ["B", "B"]

    def test_cycle_with_unknown_dependency(self) -> None:
        assert DependencyGraph(_chain()).cycle_with("A", ["GHOST"]) is None
