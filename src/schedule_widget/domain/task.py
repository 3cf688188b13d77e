"""Task data model: dated and weekly-recurring tasks with per-day completion."""

import time
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional, Set, Union

from ..utils.datetime import (
    MIDNIGHT,
    format_day,
    now_utc,
    parse_day,
    parse_iso_datetime,
    timestamp_now,
    to_iso_string,
    week_day_number,
)


WEEKDAY_NAMES = ["sun", "mon", "tue", "wed", "thu", "fri", "sat"]


@dataclass
class SingleDate:
    """Schedule for a task that happens on one calendar day."""
    date: date
    time: Optional[str] = None
    end_time: Optional[str] = None

    def occurs_on(self, day: date) -> bool:
        return day == self.date


@dataclass
class Recurring:
    """Schedule for a task that repeats on a set of weekdays (0=Sunday)."""
    days_of_week: FrozenSet[int]
    time: Optional[str] = None
    end_time: Optional[str] = None
    excluded_dates: Set[date] = field(default_factory=set)

    def occurs_on(self, day: date) -> bool:
        return week_day_number(day) in self.days_of_week and day not in self.excluded_dates


TaskSchedule = Union[SingleDate, Recurring]


class IdGenerator:
    """Millisecond-timestamp ids that never repeat within one process."""

    def __init__(self, clock: Optional[Callable[[], int]] = None):
        self._clock = clock or (lambda: int(time.time() * 1000))
        self._last = 0

    def next_id(self) -> int:
        candidate = self._clock()
        if candidate <= self._last:
            candidate = self._last + 1
        self._last = candidate
        return candidate

    def observe(self, existing_ids: Iterable[int]):
        """Make sure future ids sort after ids loaded from the document."""
        for existing in existing_ids:
            if existing > self._last:
                self._last = existing


@dataclass
class TaskSpec:
    """User input for a new task, validated by ``Schedule.add_task``."""
    title: str
    date: Optional[date] = None
    time: Optional[str] = None
    end_time: Optional[str] = None
    recurring: bool = False
    days_of_week: FrozenSet[int] = frozenset()


@dataclass
class Task:
    """A schedulable unit of work.

    Completion is tracked per calendar day so that a recurring task can be
    done on one occurrence and still open on the next.
    """

    id: int
    title: str
    schedule: TaskSchedule
    completion: Dict[date, bool] = field(default_factory=dict)
    created_at: datetime = field(default_factory=timestamp_now)

    @property
    def is_recurring(self) -> bool:
        return isinstance(self.schedule, Recurring)

    @property
    def is_period(self) -> bool:
        return self.schedule.end_time is not None

    @property
    def time(self) -> Optional[str]:
        return self.schedule.time

    @property
    def end_time(self) -> Optional[str]:
        return self.schedule.end_time

    @property
    def sort_time(self) -> str:
        """Start time used for ordering; untimed tasks sort as midnight."""
        return self.schedule.time or MIDNIGHT

    def occurs_on(self, day: date) -> bool:
        return self.schedule.occurs_on(day)

    def is_completed_on(self, day: date) -> bool:
        return self.completion.get(day, False)

    def toggle_completion(self, day: date) -> bool:
        """Flip completion for one occurrence and return the new state."""
        self.completion[day] = not self.completion.get(day, False)
        return self.completion[day]

    def exclude(self, day: date):
        """Suppress a single occurrence of a recurring task."""
        self.schedule.excluded_dates.add(day)

    def time_label(self) -> str:
        """Human-readable time window, e.g. ``09:00 - 10:30`` or ``at 09:00``."""
        if self.is_period:
            return f"{self.schedule.time or MIDNIGHT} - {self.schedule.end_time}"
        if self.schedule.time:
            return f"at {self.schedule.time}"
        return ""

    def days_label(self) -> str:
        if not self.is_recurring:
            return ""
        return ", ".join(WEEKDAY_NAMES[d].title() for d in sorted(self.schedule.days_of_week))

    def to_dict(self) -> Dict[str, Any]:
        """Convert the Task to the persisted document shape."""
        data: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "isPeriod": self.is_period,
            "isRecurring": self.is_recurring,
            "completed": {format_day(day): done for day, done in sorted(self.completion.items())},
            "createdAt": to_iso_string(self.created_at),
        }
        if self.schedule.time:
            data["time"] = self.schedule.time
        if self.schedule.end_time:
            data["endTime"] = self.schedule.end_time
        if isinstance(self.schedule, Recurring):
            data["days"] = sorted(self.schedule.days_of_week)
            data["excludedDates"] = [format_day(d) for d in sorted(self.schedule.excluded_dates)]
        else:
            data["date"] = format_day(self.schedule.date)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        """Create a Task from a persisted document entry.

        Older documents describe the schedule with the ``isRecurring`` and
        ``isPeriod`` flags; the flags are folded into the schedule variant and
        ``isPeriod`` is derived from the presence of ``endTime``.

        Raises:
            ValueError: If the entry cannot describe a valid task
        """
        if "id" not in data:
            raise ValueError("task entry has no id")
        title = str(data.get("title") or "").strip()
        if not title:
            raise ValueError(f"task {data['id']} has an empty title")

        start = data.get("time") or None
        end = data.get("endTime") or None

        if data.get("isRecurring"):
            days = frozenset(int(d) for d in data.get("days") or [])
            if not days or not days <= set(range(7)):
                raise ValueError(f"recurring task {data['id']} has no valid weekdays")
            schedule: TaskSchedule = Recurring(
                days_of_week=days,
                time=start,
                end_time=end,
                excluded_dates=set(_parse_days(data.get("excludedDates") or [])),
            )
        else:
            if not data.get("date"):
                raise ValueError(f"task {data['id']} has no date")
            schedule = SingleDate(date=parse_day(data["date"]), time=start, end_time=end)

        completion: Dict[date, bool] = {}
        for key, done in (data.get("completed") or {}).items():
            try:
                completion[parse_day(key)] = bool(done)
            except ValueError:
                continue

        return cls(
            id=int(data["id"]),
            title=title,
            schedule=schedule,
            completion=completion,
            created_at=parse_iso_datetime(data.get("createdAt")) or now_utc(),
        )


def _parse_days(values: Iterable[str]) -> List[date]:
    days = []
    for value in values:
        try:
            days.append(parse_day(value))
        except ValueError:
            continue
    return days


def parse_weekdays(raw: str) -> FrozenSet[int]:
    """Parse ``mon,wed`` or ``1,3`` into document weekday numbers (0=Sunday).

    Raises:
        ValueError: If a token is neither a weekday name nor a number
    """
    days = set()
    for token in raw.replace(" ", ",").split(","):
        token = token.strip().lower()
        if not token:
            continue
        if token.isdigit():
            days.add(int(token))
        elif token[:3] in WEEKDAY_NAMES:
            days.add(WEEKDAY_NAMES.index(token[:3]))
        else:
            raise ValueError(f"Unknown weekday: {token}")
    return frozenset(days)
