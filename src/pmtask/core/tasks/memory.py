"""
In-memory entity store.

Holds records in dictionaries for the lifetime of the process. Loads and
saves copy records so callers never share mutable state with the store.
"""

from .models import Epic, Idea, Task
from .store import register_store


def _numeric_suffix(record_id: str) -> int:
    _, _, tail = record_id.rpartition("-")
    return int(tail) if tail.isdigit() else 0


@register_store("memory")
class MemoryStore:
    """Entity store kept entirely in memory (tests, embedding, dry runs)."""

    def __init__(
        self,
        ideas: list[Idea] | None = None,
        epics: list[Epic] | None = None,
        tasks: list[Task] | None = None,
    ) -> None:
        self._ideas: dict[str, Idea] = {i.id: i.model_copy(deep=True) for i in ideas or []}
        self._epics: dict[str, Epic] = {e.id: e.model_copy(deep=True) for e in epics or []}
        self._tasks: dict[str, Task] = {t.id: t.model_copy(deep=True) for t in tasks or []}
        self._counter = max(
            (_numeric_suffix(rid) for rid in [*self._ideas, *self._epics, *self._tasks]),
            default=0,
        )

    @property
    def store_name(self) -> str:
        return "memory"

    def load_task(self, task_id: str) -> Task | None:
        task = self._tasks.get(task_id)
        return task.model_copy(deep=True) if task else None

    def load_epic(self, epic_id: str) -> Epic | None:
        epic = self._epics.get(epic_id)
        return epic.model_copy(deep=True) if epic else None

    def load_idea(self, idea_id: str) -> Idea | None:
        idea = self._ideas.get(idea_id)
        return idea.model_copy(deep=True) if idea else None

    def load_all_tasks(self) -> list[Task]:
        return [t.model_copy(deep=True) for t in self._tasks.values()]

    def load_all_epics(self) -> list[Epic]:
        return [e.model_copy(deep=True) for e in self._epics.values()]

    def load_all_ideas(self) -> list[Idea]:
        return [i.model_copy(deep=True) for i in self._ideas.values()]

    def save_task(self, task: Task) -> None:
        self._tasks[task.id] = task.model_copy(deep=True)

    def save_epic(self, epic: Epic) -> None:
        self._epics[epic.id] = epic.model_copy(deep=True)

    def save_idea(self, idea: Idea) -> None:
        self._ideas[idea.id] = idea.model_copy(deep=True)

    def next_id(self) -> int:
        self._counter += 1
        return self._counter
