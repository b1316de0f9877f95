"""
pm - Task manager for AI assistants

Tracks Ideas → Epics → Tasks and applies agent-requested task changes
behind an approval gate.
"""

__version__ = "0.1.0"

# Re-export core models for convenience
from pmtask.core.config.models import PmConfig
from pmtask.core.tasks.models import Priority, Task, TaskStatus

__all__ = ["PmConfig", "Task", "TaskStatus", "Priority", "__version__"]
