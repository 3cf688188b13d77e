"""The Schedule aggregate: tasks, habits and backlog owned by one session.

All operations are synchronous and purely in-memory. Persisting the result is
the caller's job (see ``schedule_widget.sync.coordinator``).
"""

import logging
from datetime import date
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from .backlog import BacklogItem
from .errors import InvalidModeError, NotFoundError, ValidationError
from .habit import Habit
from .task import IdGenerator, Recurring, SingleDate, Task, TaskSpec
from ..utils.datetime import is_valid_time, today


logger = logging.getLogger(__name__)


class DeleteMode(Enum):
    """How much of a task a delete removes."""
    ALL = "all"
    OCCURRENCE = "occurrence"


def _require_title(title: Optional[str]) -> str:
    cleaned = (title or "").strip()
    if not cleaned:
        raise ValidationError("Title must not be empty", field_name="title", value=title)
    return cleaned


def _validate_window(start: Optional[str], end: Optional[str]):
    for name, value in (("time", start), ("end_time", end)):
        if value is not None and not is_valid_time(value):
            raise ValidationError(f"Expected HH:MM for {name}, got {value!r}", field_name=name, value=value)
    if end is not None and end < (start or "00:00"):
        raise ValidationError("End time is earlier than start time", field_name="end_time", value=end)


def _raw_ids(unreadable: Dict[str, List[Any]]) -> List[int]:
    ids = []
    for entries in unreadable.values():
        for raw in entries:
            if isinstance(raw, dict) and isinstance(raw.get("id"), int):
                ids.append(raw["id"])
    return ids


class Schedule:
    """In-memory owner of every task, habit and backlog item."""

    def __init__(self, id_generator: Optional[IdGenerator] = None):
        self.tasks: List[Task] = []
        self.habits: List[Habit] = []
        self.backlog: List[BacklogItem] = []
        # Raw document entries that could not be decoded, written back as-is.
        self.unreadable: Dict[str, List[Any]] = {}
        self.ids = id_generator or IdGenerator()

    # Loading

    def clear(self):
        self.tasks = []
        self.habits = []
        self.backlog = []
        self.unreadable = {}

    def replace(
        self,
        tasks: Iterable[Task],
        habits: Iterable[Habit],
        backlog: Iterable[BacklogItem],
        unreadable: Optional[Dict[str, List[Any]]] = None,
    ):
        """Swap in collections decoded from the remote document.

        Args:
            tasks: Decoded tasks
            habits: Decoded habits
            backlog: Decoded backlog items
            unreadable: Raw entries per collection name that failed to decode
        """
        self.tasks = list(tasks)
        self.habits = list(habits)
        self.backlog = list(backlog)
        self.unreadable = {name: list(entries) for name, entries in (unreadable or {}).items() if entries}
        self.ids.observe(entity.id for entity in [*self.tasks, *self.habits, *self.backlog])
        self.ids.observe(_raw_ids(self.unreadable))

    # Tasks

    def add_task(self, spec: TaskSpec) -> Task:
        """Create a task from user input.

        Raises:
            ValidationError: If the title is empty, a recurring task has no
                weekday, a dated task has no date, or the time window is invalid
        """
        title = _require_title(spec.title)
        start = spec.time or None
        end = spec.end_time or None
        _validate_window(start, end)

        if spec.recurring:
            days = frozenset(spec.days_of_week)
            if not days:
                raise ValidationError("Select at least one weekday", field_name="days_of_week", value=days)
            if not days <= set(range(7)):
                raise ValidationError("Weekdays must be between 0 and 6", field_name="days_of_week", value=days)
            schedule = Recurring(days_of_week=days, time=start, end_time=end)
        else:
            if spec.date is None:
                raise ValidationError("A dated task needs a date", field_name="date")
            schedule = SingleDate(date=spec.date, time=start, end_time=end)

        task = Task(id=self.ids.next_id(), title=title, schedule=schedule)
        self.tasks.append(task)
        logger.debug("Added task %s (%s)", task.id, "recurring" if task.is_recurring else "single-date")
        return task

    def get_task(self, task_id: int) -> Task:
        for task in self.tasks:
            if task.id == task_id:
                return task
        raise NotFoundError("Task", task_id)

    def tasks_on(self, day: date) -> List[Task]:
        """Tasks visible on ``day``, ordered by start time (stable)."""
        visible = [task for task in self.tasks if task.occurs_on(day)]
        return sorted(visible, key=lambda task: task.sort_time)

    def toggle_completion(self, task_id: int, day: date) -> bool:
        try:
            task = self.get_task(task_id)
        except NotFoundError as e:
            logger.debug("toggle_completion ignored: %s", e)
            return False
        task.toggle_completion(day)
        return True

    def delete_task(self, task_id: int, mode: DeleteMode = DeleteMode.ALL, day: Optional[date] = None) -> bool:
        """Delete a task entirely or suppress one occurrence of it.

        Raises:
            InvalidModeError: If ``mode`` is unknown, or ``OCCURRENCE`` is
                requested for a dated task
            ValidationError: If ``OCCURRENCE`` is requested without a day
        """
        try:
            mode = DeleteMode(mode)
        except ValueError:
            raise InvalidModeError(f"Unknown delete mode {mode!r}; expected 'all' or 'occurrence'")
        try:
            task = self.get_task(task_id)
        except NotFoundError as e:
            logger.debug("delete_task ignored: %s", e)
            return False

        if mode is DeleteMode.OCCURRENCE:
            if not task.is_recurring:
                raise InvalidModeError(f"Task {task_id} is not recurring; only 'all' applies")
            if day is None:
                raise ValidationError("Deleting one occurrence needs a day", field_name="day")
            task.exclude(day)
            return True

        self.tasks.remove(task)
        return True

    # Habits

    def add_habit(self, title: str, goal: Optional[str] = None) -> Habit:
        habit = Habit(id=self.ids.next_id(), title=_require_title(title), goal=(goal or "").strip() or None)
        self.habits.append(habit)
        return habit

    def get_habit(self, habit_id: int) -> Habit:
        for habit in self.habits:
            if habit.id == habit_id:
                return habit
        raise NotFoundError("Habit", habit_id)

    def toggle_habit_day(self, habit_id: int, day: date) -> bool:
        try:
            habit = self.get_habit(habit_id)
        except NotFoundError as e:
            logger.debug("toggle_habit_day ignored: %s", e)
            return False
        habit.toggle_day(day)
        return True

    def streak_of(self, habit: Habit, as_of: Optional[date] = None) -> int:
        return habit.streak(as_of or today())

    def delete_habit(self, habit_id: int) -> bool:
        try:
            habit = self.get_habit(habit_id)
        except NotFoundError as e:
            logger.debug("delete_habit ignored: %s", e)
            return False
        self.habits.remove(habit)
        return True

    # Backlog

    def add_backlog_item(self, title: str, description: Optional[str] = None) -> BacklogItem:
        item = BacklogItem(
            id=self.ids.next_id(),
            title=_require_title(title),
            description=(description or "").strip() or None,
        )
        self.backlog.append(item)
        return item

    def get_backlog_item(self, item_id: int) -> BacklogItem:
        for item in self.backlog:
            if item.id == item_id:
                return item
        raise NotFoundError("Backlog item", item_id)

    def toggle_backlog_completed(self, item_id: int) -> bool:
        try:
            item = self.get_backlog_item(item_id)
        except NotFoundError as e:
            logger.debug("toggle_backlog_completed ignored: %s", e)
            return False
        item.toggle()
        return True

    def delete_backlog_item(self, item_id: int) -> bool:
        try:
            item = self.get_backlog_item(item_id)
        except NotFoundError as e:
            logger.debug("delete_backlog_item ignored: %s", e)
            return False
        self.backlog.remove(item)
        return True
