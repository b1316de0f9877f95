"""
JSON file store implementation.

Keeps every idea, epic and task of a project in a single JSON document
under the data directory. Each save rewrites the document atomically, so
a failed write never leaves a partially updated record on disk.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from .exceptions import PersistenceError
from .models import Epic, Idea, Task
from .store import register_store

logger = logging.getLogger(__name__)

STORE_FILENAME = "store.json"

ModelT = TypeVar("ModelT", bound=BaseModel)


@register_store("json")
class JsonStore:
    """
    Entity store backed by ``<data_dir>/store.json``.

    File format:
        {
            "counter": 12,
            "ideas": [{"id": "IDEA-1", ...}],
            "epics": [{"id": "EPIC-2", "ideaId": "IDEA-1", ...}],
            "tasks": [{"id": "TSK-3", "epicId": "EPIC-2", ...}]
        }

    Example:
        >>> store = JsonStore(data_dir=Path(".pm"))
        >>> task = store.load_task("TSK-3")
    """

    def __init__(self, data_dir: Path | None = None, store_file: Path | None = None):
        """
        Initialize the JSON store.

        Args:
            data_dir: Directory holding the store file (defaults to ./.pm)
            store_file: Explicit path to the store file (overrides data_dir)
        """
        self.data_dir = Path(data_dir) if data_dir else Path.cwd() / ".pm"
        self.store_file = Path(store_file) if store_file else self.data_dir / STORE_FILENAME

        # Cache for loaded data to avoid re-parsing on every call
        self._cache: dict[str, Any] | None = None
        self._cache_mtime: float | None = None

    @property
    def store_name(self) -> str:
        return "json"

    def _load(self) -> dict[str, Any]:
        """
        Load and parse the store file with caching.

        A missing file is an empty store.

        Raises:
            PersistenceError: If the file cannot be read or is malformed
        """
        if not self.store_file.exists():
            return {"counter": 0, "ideas": [], "epics": [], "tasks": []}

        current_mtime = os.path.getmtime(self.store_file)
        if self._cache is not None and self._cache_mtime == current_mtime:
            return self._cache

        try:
            with open(self.store_file, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise PersistenceError(
                f"Failed to parse {self.store_file}: {e}", path=str(self.store_file)
            ) from e
        except OSError as e:
            raise PersistenceError(
                f"Failed to read {self.store_file}: {e}", path=str(self.store_file)
            ) from e

        if not isinstance(data, dict):
            raise PersistenceError(
                f"{self.store_file} must contain a JSON object", path=str(self.store_file)
            )
        for key in ("ideas", "epics", "tasks"):
            data.setdefault(key, [])
        data.setdefault("counter", 0)

        self._cache = data
        self._cache_mtime = current_mtime
        return data

    def _save(self, data: dict[str, Any]) -> None:
        """
        Write the whole store atomically.

        Uses a temporary file in the same directory and an atomic rename.

        Raises:
            PersistenceError: If any step of the write fails
        """
        try:
            self.store_file.parent.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(
                dir=self.store_file.parent, prefix=".store_", suffix=".json.tmp"
            )
        except OSError as e:
            raise PersistenceError(
                f"Failed to write {self.store_file}: {e}", path=str(self.store_file)
            ) from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
                f.write("\n")
            os.replace(temp_path, self.store_file)
        except OSError as e:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise PersistenceError(
                f"Failed to write {self.store_file}: {e}", path=str(self.store_file)
            ) from e
        finally:
            # The next read re-parses from disk
            self._cache = None
            self._cache_mtime = None

    @staticmethod
    def _dump(record: BaseModel) -> dict[str, Any]:
        return record.model_dump(by_alias=True, mode="json")

    def _find(self, collection: str, record_id: str) -> dict[str, Any] | None:
        for raw in self._load().get(collection, []):
            if isinstance(raw, dict) and raw.get("id") == record_id:
                return raw
        return None

    def _parse_one(self, collection: str, record_id: str, model: type[ModelT]) -> ModelT | None:
        """
        Load one record by ID.

        Raises:
            PersistenceError: If the stored record does not match its schema
        """
        raw = self._find(collection, record_id)
        if raw is None:
            return None
        try:
            return model.model_validate(raw)
        except ValidationError as e:
            raise PersistenceError(
                f"Invalid {collection} record {record_id} in {self.store_file}: {e}",
                path=str(self.store_file),
            ) from e

    def _parse_all(self, collection: str, model: type[BaseModel]) -> list[Any]:
        records = []
        for raw in self._load().get(collection, []):
            try:
                records.append(model.model_validate(raw))
            except ValidationError as e:
                record_id = raw.get("id") if isinstance(raw, dict) else None
                logger.warning("Skipping invalid %s record %s: %s", collection, record_id, e)
        return records

    def _upsert(self, collection: str, record: BaseModel) -> None:
        # Copy so a failed write leaves the cached document untouched
        data = json.loads(json.dumps(self._load()))
        records = data[collection]
        payload = self._dump(record)
        for i, raw in enumerate(records):
            if raw.get("id") == payload["id"]:
                records[i] = payload
                break
        else:
            records.append(payload)
        self._save(data)
        logger.debug("Saved %s record %s", collection, payload["id"])

    def load_task(self, task_id: str) -> Task | None:
        return self._parse_one("tasks", task_id, Task)

    def load_epic(self, epic_id: str) -> Epic | None:
        return self._parse_one("epics", epic_id, Epic)

    def load_idea(self, idea_id: str) -> Idea | None:
        return self._parse_one("ideas", idea_id, Idea)

    def load_all_tasks(self) -> list[Task]:
        return self._parse_all("tasks", Task)

    def load_all_epics(self) -> list[Epic]:
        return self._parse_all("epics", Epic)

    def load_all_ideas(self) -> list[Idea]:
        return self._parse_all("ideas", Idea)

    def save_task(self, task: Task) -> None:
        self._upsert("tasks", task)

    def save_epic(self, epic: Epic) -> None:
        self._upsert("epics", epic)

    def save_idea(self, idea: Idea) -> None:
        self._upsert("ideas", idea)

    def next_id(self) -> int:
        data = json.loads(json.dumps(self._load()))
        data["counter"] = int(data.get("counter", 0)) + 1
        self._save(data)
        return data["counter"]
