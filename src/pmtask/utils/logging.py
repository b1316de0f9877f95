"""
Structured JSONL event log for pm.

Writes one JSON object per line for every task event, so agents and tools
can replay what changed without parsing human-readable output. Events are
written to ``<data_dir>/events.jsonl`` by default.

Each log line has the format:
{
  "timestamp": "2026-01-15T12:34:56.789Z",
  "event_type": "task_updated",
  "data": { ... machine-readable summary ... }
}
"""

from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class EventType(str, Enum):
    """Types of events that can be logged."""

    TASK_UPDATED = "task_updated"
    TASK_UPDATE_REJECTED = "task_update_rejected"
    ENTITY_CREATED = "entity_created"
    ENTITY_UPDATED = "entity_updated"
    ENTITY_UPDATE_REJECTED = "entity_update_rejected"


class LogEntry(BaseModel):
    """A single structured log entry in JSONL format."""

    model_config = ConfigDict(use_enum_values=True)

    timestamp: datetime = Field(..., description="When the event occurred (ISO 8601 format)")
    event_type: EventType = Field(..., description="Type of event")
    data: dict[str, Any] = Field(default_factory=dict, description="Event-specific data")


class EventLogger:
    """
    Append-only JSONL event logger.

    Example:
        logger = EventLogger(Path(".pm/events.jsonl"))
        logger.log_event(EventType.TASK_UPDATED, result.summary())
    """

    def __init__(self, log_file: Path):
        """
        Initialize logger with a log file path.

        Args:
            log_file: Path to the JSONL log file (created on first write)
        """
        self.log_file = Path(log_file)

    def log_event(self, event_type: EventType, data: dict[str, Any] | None = None) -> None:
        """
        Write a log event to the JSONL file.

        Write failures print a warning and never propagate, so logging can't
        fail the operation being logged.

        Args:
            event_type: Type of event (from EventType enum)
            data: Event-specific data (optional, defaults to {})
        """
        if data is None:
            data = {}

        try:
            entry = LogEntry(timestamp=datetime.now(timezone.utc), event_type=event_type, data=data)
            log_line = entry.model_dump_json(exclude_none=True) + "\n"

            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.log_file, "a", encoding="utf-8") as f:
                f.write(log_line)

        except OSError as e:
            print(f"Warning: Failed to write to log file {self.log_file}: {e}", flush=True)

    def log_task_updated(self, summary: dict[str, Any]) -> None:
        """Log a successful (possibly empty) task update."""
        self.log_event(EventType.TASK_UPDATED, summary)

    def log_update_rejected(self, task_id: str, error_type: str, message: str) -> None:
        """
        Log a rejected task update.

        Args:
            task_id: Task the request targeted
            error_type: Exception class name (e.g. "DependencyNotFoundError")
            message: Error message
        """
        self.log_event(
            EventType.TASK_UPDATE_REJECTED,
            {"task_id": task_id, "error": error_type, "message": message},
        )

    def log_entity_created(self, entity_type: str, entity_id: str, title: str) -> None:
        """Log creation of an idea, epic or task."""
        self.log_event(
            EventType.ENTITY_CREATED,
            {"entity_type": entity_type, "entity_id": entity_id, "title": title},
        )

    def log_entity_updated(self, summary: dict[str, Any]) -> None:
        """Log a successful (possibly empty) idea or epic update."""
        self.log_event(EventType.ENTITY_UPDATED, summary)

    def log_entity_update_rejected(
        self, entity_type: str, entity_id: str, error_type: str, message: str
    ) -> None:
        """Log a rejected idea or epic update."""
        self.log_event(
            EventType.ENTITY_UPDATE_REJECTED,
            {
                "entity_type": entity_type,
                "entity_id": entity_id,
                "error": error_type,
                "message": message,
            },
        )

    def read_events(self) -> list[LogEntry]:
        """Read every event back, skipping malformed lines."""
        if not self.log_file.exists():
            return []
        entries = []
        with open(self.log_file, encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    entries.append(LogEntry.model_validate_json(line))
                except ValueError:
                    continue
        return entries
