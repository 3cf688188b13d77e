"""Exceptions raised by the schedule domain model."""

from typing import Any, Optional


class ScheduleError(Exception):
    """Base exception for domain model operations."""
    pass


class ValidationError(ScheduleError):
    """User input was rejected before touching any state."""

    def __init__(self, message: str, field_name: Optional[str] = None, value: Any = None):
        self.field_name = field_name
        self.value = value
        super().__init__(message)


class InvalidModeError(ScheduleError):
    """A delete mode does not apply to the task's schedule kind."""
    pass


class NotFoundError(ScheduleError):
    """No entity with the given id exists."""

    def __init__(self, kind: str, entity_id: int):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind} {entity_id} not found")
