"""Habit data model: a daily yes/no behaviour with a streak."""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Dict, Optional, Set

from ..utils.datetime import format_day, now_utc, parse_day, parse_iso_datetime, timestamp_now, to_iso_string, today


STREAK_LOOKBACK_DAYS = 365


@dataclass
class Habit:
    """A tracked daily behaviour."""
    id: int
    title: str
    goal: Optional[str] = None
    completed_dates: Set[date] = field(default_factory=set)
    created_at: datetime = field(default_factory=timestamp_now)

    def is_done_on(self, day: date) -> bool:
        return day in self.completed_dates

    def toggle_day(self, day: date) -> bool:
        """Mark or unmark a day and return whether it is now done."""
        if day in self.completed_dates:
            self.completed_dates.discard(day)
            return False
        self.completed_dates.add(day)
        return True

    def streak(self, as_of: Optional[date] = None) -> int:
        """Count consecutive done days walking backward from ``as_of``.

        The walk stops at the first missing day and never looks further back
        than ``STREAK_LOOKBACK_DAYS``.
        """
        day = as_of or today()
        count = 0
        while count < STREAK_LOOKBACK_DAYS and day in self.completed_dates:
            count += 1
            day -= timedelta(days=1)
        return count

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "completedDates": [format_day(d) for d in sorted(self.completed_dates)],
            "createdAt": to_iso_string(self.created_at),
        }
        if self.goal:
            data["goal"] = self.goal
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Habit":
        if "id" not in data:
            raise ValueError("habit entry has no id")
        title = str(data.get("title") or "").strip()
        if not title:
            raise ValueError(f"habit {data['id']} has an empty title")

        completed = set()
        for value in data.get("completedDates") or []:
            try:
                completed.add(parse_day(value))
            except ValueError:
                continue

        return cls(
            id=int(data["id"]),
            title=title,
            goal=data.get("goal") or None,
            completed_dates=completed,
            created_at=parse_iso_datetime(data.get("createdAt")) or now_utc(),
        )
