"""
Entity store protocol and registry.

This module defines the EntityStore protocol that all storage backends
must implement, enabling pluggable persistence (JSON file, in-memory).
Lookups return None for a missing record; absence is a normal result.
"""

from collections.abc import Callable
from pathlib import Path
from typing import Protocol, runtime_checkable

from .models import Epic, Idea, Task


@runtime_checkable
class EntityStore(Protocol):
    """
    Protocol for entity store implementations.

    Stores are responsible for:
    - Loading ideas, epics and tasks by ID
    - Loading full snapshots for aggregation
    - Persisting one whole record per save call
    - Allocating project-wide numeric IDs

    Save methods raise PersistenceError on failure and never leave a
    partially written record visible.
    """

    def load_task(self, task_id: str) -> Task | None:
        """
        Load a task by ID.

        Args:
            task_id: Task identifier

        Returns:
            Task if found, None otherwise
        """
        ...

    def load_epic(self, epic_id: str) -> Epic | None:
        """Load an epic by ID, or None."""
        ...

    def load_idea(self, idea_id: str) -> Idea | None:
        """Load an idea by ID, or None."""
        ...

    def load_all_tasks(self) -> list[Task]:
        """Load every task in the store."""
        ...

    def load_all_epics(self) -> list[Epic]:
        """Load every epic in the store."""
        ...

    def load_all_ideas(self) -> list[Idea]:
        """Load every idea in the store."""
        ...

    def save_task(self, task: Task) -> None:
        """
        Insert or replace a task record.

        Raises:
            PersistenceError: If the write fails
        """
        ...

    def save_epic(self, epic: Epic) -> None:
        """Insert or replace an epic record."""
        ...

    def save_idea(self, idea: Idea) -> None:
        """Insert or replace an idea record."""
        ...

    def next_id(self) -> int:
        """
        Allocate the next project-wide numeric ID.

        IDs are shared across ideas, epics and tasks and never reused.
        """
        ...

    @property
    def store_name(self) -> str:
        """Name of this store (e.g., 'json', 'memory')."""
        ...


# Store registry
_stores: dict[str, Callable[..., EntityStore]] = {}


def register_store(name: str) -> Callable[[type], type]:
    """
    Decorator to register an entity store implementation.

    Usage:
        @register_store('json')
        class JsonStore:
            def load_task(self, task_id):
                ...

    Args:
        name: Store name (e.g., 'json', 'memory')

    Returns:
        Decorator function
    """

    def decorator(store_class: type) -> type:
        _stores[name] = store_class
        return store_class

    return decorator


def get_store(name: str = "json", data_dir: Path | None = None) -> EntityStore:
    """
    Instantiate a registered store.

    Args:
        name: Store name ('json' or 'memory')
        data_dir: Directory for file-backed stores (ignored by 'memory')

    Returns:
        EntityStore instance

    Raises:
        ValueError: If the store name is not registered
    """
    store_class = _stores.get(name)
    if store_class is None:
        raise ValueError(
            f"Store '{name}' not registered. Available stores: {', '.join(sorted(_stores))}"
        )
    if name == "memory":
        return store_class()
    return store_class(data_dir=data_dir)


def list_stores() -> list[str]:
    """List all registered store names."""
    return list(_stores.keys())
