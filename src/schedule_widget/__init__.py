"""Schedule Widget - day-at-a-time tasks, habits and backlog synced to a remote JSON document."""

__version__ = "0.1.0"

from .domain import (
    Task,
    TaskSpec,
    Habit,
    BacklogItem,
    Schedule,
    DeleteMode,
)

__all__ = ["Task", "TaskSpec", "Habit", "BacklogItem", "Schedule", "DeleteMode", "__version__"]
