"""
Dependency graph for task readiness and integrity checks.

Provides a pure query object built from a task list snapshot. Immutable after
construction. Used by the lifecycle engine to detect dependency cycles and by
the task service for dependency reports and next-task selection.
"""

from __future__ import annotations

from collections import deque

from .models import Task, TaskStatus


class DependencyGraph:
    """Immutable dependency graph built from a snapshot of tasks.

    The graph models two kinds of edges:

    * **forward edge** (``dependencies``): task A depends on task B  →  A cannot
      start until B is done.
    * **reverse edge** (``unblocks``): finishing B *unblocks* A.

    Example::

        graph = DependencyGraph(store.load_all_tasks())
        # Would TSK-3 depending on TSK-7 close a loop?
        graph.cycle_with("TSK-3", ["TSK-7"])
    """

    __slots__ = ("_tasks", "_forward", "_reverse", "_done", "_all_ids")

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def __init__(self, tasks: list[Task]) -> None:
        self._tasks: dict[str, Task] = {t.id: t for t in tasks}
        self._all_ids: frozenset[str] = frozenset(self._tasks)

        # forward[A] = {B, C} means A depends on B and C
        self._forward: dict[str, set[str]] = {}
        # reverse[B] = {A} means finishing B unblocks A
        self._reverse: dict[str, set[str]] = {}

        self._done: frozenset[str] = frozenset(
            t.id for t in tasks if t.status == TaskStatus.DONE
        )

        for task in tasks:
            deps = set(task.dependencies) & self._all_ids  # ignore dangling refs
            self._forward[task.id] = deps
            for dep_id in deps:
                self._reverse.setdefault(dep_id, set()).add(task.id)

    # ------------------------------------------------------------------
    # Core queries
    # ------------------------------------------------------------------

    def dependencies_of(self, task_id: str) -> list[Task]:
        """Resolved dependency tasks of *task_id*, in declaration order."""
        task = self._tasks.get(task_id)
        if task is None:
            return []
        return [self._tasks[dep] for dep in task.dependencies if dep in self._all_ids]

    def missing_dependencies(self, task_id: str) -> list[str]:
        """Declared dependency IDs of *task_id* that are not in the snapshot."""
        task = self._tasks.get(task_id)
        if task is None:
            return []
        return [dep for dep in task.dependencies if dep not in self._all_ids]

    def direct_unblocks(self, task_id: str) -> list[str]:
        """Return task IDs that directly depend on *task_id* (reverse edge lookup)."""
        return sorted(self._reverse.get(task_id, set()))

    def is_ready(self, task_id: str) -> bool:
        """True if every resolved dependency of *task_id* is done."""
        return self._forward.get(task_id, set()) <= self._done

    def ready_tasks(self) -> list[Task]:
        """Pending tasks whose dependencies are all done, in snapshot order."""
        return [
            task
            for task in self._tasks.values()
            if task.status == TaskStatus.PENDING and self.is_ready(task.id)
        ]

    # ------------------------------------------------------------------
    # Cycles
    # ------------------------------------------------------------------

    def path(self, start: str, goal: str) -> list[str] | None:
        """Shortest forward-edge path from *start* to *goal*, inclusive, or None."""
        if start == goal:
            return [start]
        parents: dict[str, str] = {}
        queue: deque[str] = deque([start])
        seen = {start}
        while queue:
            current = queue.popleft()
            for dep in sorted(self._forward.get(current, set())):
                if dep in seen:
                    continue
                parents[dep] = current
                if dep == goal:
                    found = [goal]
                    while found[-1] != start:
                        found.append(parents[found[-1]])
                    return list(reversed(found))
                seen.add(dep)
                queue.append(dep)
        return None

    def cycle_with(self, task_id: str, dependencies: list[str]) -> list[str] | None:
        """Cycle that would exist if *task_id* depended on *dependencies*.

        Returns the loop as ``[task_id, ..., task_id]`` or None. Dependencies
        outside the snapshot are ignored.
        """
        for dep_id in sorted(set(dependencies)):
            if dep_id == task_id:
                return [task_id, task_id]
            if dep_id not in self._all_ids:
                continue
            back = self.path(dep_id, task_id)
            if back is not None:
                return [task_id] + back
        return None
