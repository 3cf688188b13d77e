"""Tests for the schedule document codec."""

import json
import pytest
from datetime import date, datetime, timezone

from schedule_widget.domain import Schedule, TaskSpec
from schedule_widget.sync.envelope import EnvelopeError, decode_envelope, encode_envelope


MONDAY = date(2024, 5, 6)


@pytest.fixture
def populated_schedule():
    schedule = Schedule()
    dentist = schedule.add_task(TaskSpec(title="Зубной врач 🦷", date=MONDAY, time="10:00", end_time="11:00"))
    gym = schedule.add_task(TaskSpec(title="Gym", recurring=True, days_of_week=frozenset({1, 3}), time="07:00"))
    schedule.toggle_completion(dentist.id, MONDAY)
    schedule.delete_task(gym.id, "occurrence", MONDAY)
    habit = schedule.add_habit("Read", goal="20 pages")
    schedule.toggle_habit_day(habit.id, MONDAY)
    schedule.add_backlog_item("Fix bike", "Rear brake")
    return schedule


class TestEncode:
    """Test document encoding."""

    def test_envelope_shape(self, populated_schedule):
        now = datetime(2024, 5, 6, 12, 0, tzinfo=timezone.utc)

        document = json.loads(encode_envelope(populated_schedule, now=now))

        assert set(document) == {"tasks", "habits", "backlog", "lastUpdated"}
        assert document["lastUpdated"] == "2024-05-06T12:00:00.000Z"
        assert len(document["tasks"]) == 2
        assert document["habits"][0]["completedDates"] == ["2024-05-06"]
        assert document["backlog"][0]["description"] == "Rear brake"

    def test_non_ascii_written_as_utf8(self, populated_schedule):
        raw = encode_envelope(populated_schedule)

        assert "Зубной врач 🦷".encode("utf-8") in raw


class TestDecode:
    """Test document decoding."""

    def test_round_trip(self, populated_schedule):
        envelope = decode_envelope(encode_envelope(populated_schedule))

        assert envelope.tasks == populated_schedule.tasks
        assert envelope.habits == populated_schedule.habits
        assert envelope.backlog == populated_schedule.backlog

    def test_round_trip_preserves_day_view(self, populated_schedule):
        restored = Schedule()
        envelope = decode_envelope(encode_envelope(populated_schedule))
        restored.replace(envelope.tasks, envelope.habits, envelope.backlog)

        for offset in range(14):
            day = date.fromordinal(MONDAY.toordinal() + offset)
            assert restored.tasks_on(day) == populated_schedule.tasks_on(day)

    def test_missing_collections_default_to_empty(self):
        raw = json.dumps({
            "tasks": [{"id": 1, "title": "Old task", "date": "2024-05-06", "completed": {}}],
            "lastUpdated": "2024-05-01T00:00:00.000Z",
        }).encode("utf-8")

        envelope = decode_envelope(raw)

        assert [t.title for t in envelope.tasks] == ["Old task"]
        assert envelope.habits == []
        assert envelope.backlog == []
        assert envelope.last_updated == datetime(2024, 5, 1, tzinfo=timezone.utc)

    def test_empty_object(self):
        envelope = decode_envelope(b"{}")

        assert envelope.tasks == [] and envelope.habits == [] and envelope.backlog == []
        assert envelope.last_updated is None

    def test_unusable_entries_are_kept_raw(self, caplog):
        raw = json.dumps({
            "tasks": [
                {"id": 1, "title": "Broken", "isRecurring": True, "days": []},
                "not an object",
                {"id": 2, "title": "Fine", "date": "2024-05-06"},
            ],
            "habits": {"not": "a list"},
        }).encode("utf-8")

        envelope = decode_envelope(raw)

        assert [t.id for t in envelope.tasks] == [2]
        assert envelope.habits == []
        assert envelope.unreadable == {
            "tasks": [{"id": 1, "title": "Broken", "isRecurring": True, "days": []}, "not an object"],
        }
        assert "Keeping unreadable task entry" in caplog.text

    @pytest.mark.parametrize("raw", [b"not json", b"[1, 2]", "é".encode("latin-1")])
    def test_invalid_documents_raise(self, raw):
        with pytest.raises(EnvelopeError):
            decode_envelope(raw)

    def test_unreadable_entries_are_written_back(self):
        legacy = {"id": 1, "title": "Yoga", "isRecurring": True, "days": []}
        raw = json.dumps({
            "tasks": [legacy, {"id": 2, "title": "Fine", "date": "2024-05-06"}],
            "backlog": [{"id": 3, "title": ""}],
        }).encode("utf-8")
        envelope = decode_envelope(raw)
        schedule = Schedule()
        schedule.replace(envelope.tasks, envelope.habits, envelope.backlog, envelope.unreadable)

        document = json.loads(encode_envelope(schedule))

        assert document["tasks"][0]["id"] == 2
        assert document["tasks"][1] == legacy
        assert document["backlog"] == [{"id": 3, "title": ""}]
        assert document["habits"] == []
