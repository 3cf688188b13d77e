"""Tests for Task, Habit and BacklogItem models."""

import pytest
from datetime import date, datetime, timedelta, timezone

from schedule_widget.domain import BacklogItem, Habit, Recurring, SingleDate, Task, parse_weekdays


DAY = date(2024, 5, 6)
CREATED = datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc)


class TestTask:
    """Test Task model functionality."""

    def test_time_label_for_period(self):
        task = Task(id=1, title="Standup", schedule=SingleDate(DAY, time="09:00", end_time="09:15"))

        assert task.is_period
        assert task.time_label() == "09:00 - 09:15"

    def test_time_label_for_period_without_start(self):
        task = Task(id=1, title="Nap", schedule=SingleDate(DAY, end_time="01:00"))

        assert task.time_label() == "00:00 - 01:00"

    def test_time_label_for_point_in_time(self):
        task = Task(id=1, title="Call", schedule=SingleDate(DAY, time="14:00"))

        assert not task.is_period
        assert task.time_label() == "at 14:00"

    def test_time_label_untimed(self):
        assert Task(id=1, title="Errand", schedule=SingleDate(DAY)).time_label() == ""

    def test_days_label(self):
        task = Task(id=1, title="Gym", schedule=Recurring(frozenset({5, 1, 3})))

        assert task.days_label() == "Mon, Wed, Fri"

    def test_to_dict_single_date(self):
        task = Task(
            id=1714550400000,
            title="Dentist",
            schedule=SingleDate(DAY, time="10:00"),
            completion={DAY: True},
            created_at=CREATED,
        )

        assert task.to_dict() == {
            "id": 1714550400000,
            "title": "Dentist",
            "time": "10:00",
            "isPeriod": False,
            "isRecurring": False,
            "date": "2024-05-06",
            "completed": {"2024-05-06": True},
            "createdAt": "2024-05-01T08:00:00.000Z",
        }

    def test_to_dict_recurring(self):
        task = Task(
            id=2,
            title="Gym",
            schedule=Recurring(frozenset({3, 1}), time="07:00", end_time="08:00", excluded_dates={DAY}),
            created_at=CREATED,
        )

        data = task.to_dict()

        assert data["isRecurring"] is True
        assert data["isPeriod"] is True
        assert data["days"] == [1, 3]
        assert data["excludedDates"] == ["2024-05-06"]
        assert data["endTime"] == "08:00"
        assert "date" not in data

    def test_from_dict_legacy_single_task(self):
        """Documents written before habits existed use empty strings for missing times."""
        task = Task.from_dict({
            "id": 1700000000000,
            "title": "Pay rent",
            "time": "",
            "isPeriod": False,
            "isRecurring": False,
            "date": "2024-05-06",
            "completed": {"2024-05-06": True, "garbage": True},
            "createdAt": "2023-11-14T22:13:20.000Z",
        })

        assert isinstance(task.schedule, SingleDate)
        assert task.time is None
        assert task.completion == {DAY: True}
        assert task.created_at == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)

    def test_from_dict_recurring_period(self):
        task = Task.from_dict({
            "id": 5,
            "title": "Swim",
            "time": "18:00",
            "endTime": "19:00",
            "isPeriod": True,
            "isRecurring": True,
            "days": [2, 4],
            "completed": {},
        })

        assert isinstance(task.schedule, Recurring)
        assert task.schedule.days_of_week == frozenset({2, 4})
        assert task.schedule.excluded_dates == set()
        assert task.end_time == "19:00"

    def test_is_period_follows_end_time_not_flag(self):
        task = Task.from_dict({"id": 1, "title": "x", "isPeriod": True, "date": "2024-05-06"})

        assert not task.is_period

    @pytest.mark.parametrize("data", [
        {"title": "no id", "date": "2024-05-06"},
        {"id": 1, "title": "", "date": "2024-05-06"},
        {"id": 1, "title": "no date"},
        {"id": 1, "title": "no days", "isRecurring": True, "days": []},
        {"id": 1, "title": "bad day", "isRecurring": True, "days": [9]},
        {"id": 1, "title": "bad date", "date": "06/05/2024"},
    ])
    def test_from_dict_rejects_unusable_entries(self, data):
        with pytest.raises(ValueError):
            Task.from_dict(data)


class TestHabit:
    """Test habit streaks."""

    def test_streak_counts_back_from_today(self):
        today = date(2024, 5, 6)
        habit = Habit(id=1, title="Read", completed_dates={today, today - timedelta(days=1), today - timedelta(days=2)})

        assert habit.streak(today) == 3

    def test_gap_breaks_streak(self):
        today = date(2024, 5, 6)
        habit = Habit(id=1, title="Read", completed_dates={today, today - timedelta(days=1), today - timedelta(days=2)})

        habit.toggle_day(today - timedelta(days=1))

        assert habit.streak(today) == 1

    def test_not_done_today_means_no_streak(self):
        today = date(2024, 5, 6)
        habit = Habit(id=1, title="Read", completed_dates={today - timedelta(days=1)})

        assert habit.streak(today) == 0

    def test_streak_lookback_is_bounded(self):
        today = date(2024, 5, 6)
        habit = Habit(id=1, title="Read", completed_dates={today - timedelta(days=n) for n in range(500)})

        assert habit.streak(today) == 365

    def test_round_trip_dict(self):
        habit = Habit(id=3, title="Stretch", goal="Every morning", completed_dates={DAY}, created_at=CREATED)

        assert Habit.from_dict(habit.to_dict()) == habit

    def test_goal_omitted_when_empty(self):
        assert "goal" not in Habit(id=3, title="Stretch").to_dict()


class TestBacklogItem:
    """Test backlog items."""

    def test_toggle(self):
        item = BacklogItem(id=1, title="Fix bike")

        assert item.toggle() is True
        assert item.toggle() is False

    def test_round_trip_dict(self):
        item = BacklogItem(id=1, title="Fix bike", description="Rear brake", completed=True, created_at=CREATED)

        assert BacklogItem.from_dict(item.to_dict()) == item


class TestParseWeekdays:
    """Test weekday parsing for user input."""

    def test_names(self):
        assert parse_weekdays("mon, Wednesday,fri") == frozenset({1, 3, 5})

    def test_numbers(self):
        assert parse_weekdays("0,6") == frozenset({0, 6})

    def test_unknown_name(self):
        with pytest.raises(ValueError):
            parse_weekdays("someday")
