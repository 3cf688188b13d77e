"""Date and time utilities for calendar days and wall-clock times.

Calendar days are plain ``date`` objects in memory and ``YYYY-MM-DD`` strings
on the wire. Times of day are ``HH:MM`` 24-hour strings. Timestamps such as
``createdAt`` and ``lastUpdated`` are timezone-aware UTC datetimes.
"""

import re
from datetime import date, datetime, timezone
from typing import Optional


TIME_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")
DAY_FORMAT = "%Y-%m-%d"
MIDNIGHT = "00:00"


def now_utc() -> datetime:
    """Return current datetime in UTC timezone.

    Returns:
        Current datetime with timezone=UTC
    """
    return datetime.now(timezone.utc)


def timestamp_now() -> datetime:
    """Current UTC time truncated to the millisecond precision that is persisted."""
    now = now_utc()
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def ensure_aware(dt: Optional[datetime]) -> Optional[datetime]:
    """Ensure datetime is timezone-aware, assuming UTC if naive.

    Args:
        dt: Datetime to check/convert, or None

    Returns:
        Timezone-aware datetime in UTC, or None if input was None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt


def to_iso_string(dt: Optional[datetime]) -> Optional[str]:
    """Convert datetime to an ISO-8601 string in the ``Z`` form.

    Args:
        dt: Datetime to convert, or None

    Returns:
        ISO format string such as ``2024-05-01T09:30:00.000Z``, or None
    """
    if dt is None:
        return None

    aware_dt = ensure_aware(dt).astimezone(timezone.utc)
    return aware_dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp, accepting the trailing ``Z`` form."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return ensure_aware(parsed)


def format_day(day: date) -> str:
    """Format a calendar day as ``YYYY-MM-DD``."""
    return day.strftime(DAY_FORMAT)


def parse_day(value: str) -> date:
    """Parse a ``YYYY-MM-DD`` string into a calendar day.

    Raises:
        ValueError: If the string is not a valid calendar day
    """
    return datetime.strptime(value.strip(), DAY_FORMAT).date()


def is_valid_time(value: str) -> bool:
    """Check that ``value`` is an ``HH:MM`` 24-hour time."""
    return bool(TIME_RE.match(value))


def week_day_number(day: date) -> int:
    """Weekday number as stored in the schedule document (0=Sunday, 6=Saturday)."""
    return (day.weekday() + 1) % 7


def today() -> date:
    """Return today's local calendar day."""
    return date.today()
