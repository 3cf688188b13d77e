"""Domain models for Schedule Widget."""

from .task import Task, TaskSpec, SingleDate, Recurring, IdGenerator, parse_weekdays
from .habit import Habit
from .backlog import BacklogItem
from .schedule import Schedule, DeleteMode
from .errors import ScheduleError, ValidationError, InvalidModeError, NotFoundError

__all__ = [
    "Task",
    "TaskSpec",
    "SingleDate",
    "Recurring",
    "IdGenerator",
    "parse_weekdays",
    "Habit",
    "BacklogItem",
    "Schedule",
    "DeleteMode",
    "ScheduleError",
    "ValidationError",
    "InvalidModeError",
    "NotFoundError",
]
