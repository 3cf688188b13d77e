"""Conversion between the Schedule and the persisted JSON document.

The document is a single UTF-8 JSON object::

    {"tasks": [...], "habits": [...], "backlog": [...], "lastUpdated": "..."}

Documents written by older versions only carry ``tasks``; missing collections
load as empty.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar

from ..domain import BacklogItem, Habit, Schedule, Task
from ..utils.datetime import now_utc, parse_iso_datetime, to_iso_string


logger = logging.getLogger(__name__)

T = TypeVar("T")


class EnvelopeError(Exception):
    """The remote document is not a schedule envelope."""
    pass


@dataclass
class Envelope:
    tasks: List[Task] = field(default_factory=list)
    habits: List[Habit] = field(default_factory=list)
    backlog: List[BacklogItem] = field(default_factory=list)
    last_updated: Optional[datetime] = None
    # Raw entries per collection name that could not be mapped onto the model.
    unreadable: Dict[str, List[Any]] = field(default_factory=dict)


def encode_envelope(schedule: Schedule, now: Optional[datetime] = None) -> bytes:
    """Serialize every collection plus a fresh ``lastUpdated`` timestamp.

    Entries that could not be decoded on load are appended unchanged, so a
    save never drops data this version does not understand.
    """
    document = {
        "tasks": [task.to_dict() for task in schedule.tasks] + schedule.unreadable.get("tasks", []),
        "habits": [habit.to_dict() for habit in schedule.habits] + schedule.unreadable.get("habits", []),
        "backlog": [item.to_dict() for item in schedule.backlog] + schedule.unreadable.get("backlog", []),
        "lastUpdated": to_iso_string(now or now_utc()),
    }
    return json.dumps(document, ensure_ascii=False, indent=2).encode("utf-8")


def _decode_entries(
    raw_entries: Any, factory: Callable[[Dict[str, Any]], T], kind: str
) -> Tuple[List[T], List[Any]]:
    """Map raw entries onto the model.

    Returns:
        The decoded entries and the raw entries that could not be decoded
    """
    if not isinstance(raw_entries, list):
        if raw_entries is not None:
            logger.warning("Ignoring %s: expected a list, got %s", kind, type(raw_entries).__name__)
        return [], []

    entries = []
    unreadable = []
    for raw in raw_entries:
        if not isinstance(raw, dict):
            logger.warning("Keeping %s entry that is not an object as-is: %r", kind, raw)
            unreadable.append(raw)
            continue
        try:
            entries.append(factory(raw))
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning("Keeping unreadable %s entry as-is: %s", kind, e)
            unreadable.append(raw)
    return entries, unreadable


def decode_envelope(raw: bytes) -> Envelope:
    """Parse document bytes into domain entities.

    Raises:
        EnvelopeError: If the bytes are not a UTF-8 JSON object
    """
    try:
        document = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise EnvelopeError(f"Schedule document is not valid JSON: {e}") from e

    if not isinstance(document, dict):
        raise EnvelopeError("Schedule document must be a JSON object")

    tasks, unreadable_tasks = _decode_entries(document.get("tasks"), Task.from_dict, "task")
    habits, unreadable_habits = _decode_entries(document.get("habits"), Habit.from_dict, "habit")
    backlog, unreadable_backlog = _decode_entries(document.get("backlog"), BacklogItem.from_dict, "backlog")

    return Envelope(
        tasks=tasks,
        habits=habits,
        backlog=backlog,
        last_updated=parse_iso_datetime(document.get("lastUpdated")),
        unreadable={
            name: entries
            for name, entries in (
                ("tasks", unreadable_tasks),
                ("habits", unreadable_habits),
                ("backlog", unreadable_backlog),
            )
            if entries
        },
    )
