"""Notification channel between the sync core and whatever UI subscribes.

The core never talks to a screen directly. It publishes ``Notification``
objects and each subscriber decides how to show them (a console line, a
toast, a log entry).
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional

from ..utils.datetime import now_utc


logger = logging.getLogger(__name__)


class NotificationLevel(Enum):
    """Severity of a notification"""
    INFO = "info"
    ERROR = "error"


@dataclass
class Notification:
    """A message for the user"""
    level: NotificationLevel
    message: str
    error: Optional[BaseException] = None
    created_at: datetime = field(default_factory=now_utc)

    @property
    def is_error(self) -> bool:
        return self.level is NotificationLevel.ERROR


Subscriber = Callable[[Notification], None]


class Notifier:
    """Fan-out of notifications to subscribed callbacks."""

    def __init__(self):
        self._subscribers: List[Subscriber] = []
        self.history: List[Notification] = []
        self.max_history_entries = 50

    def subscribe(self, callback: Subscriber) -> Subscriber:
        if callback not in self._subscribers:
            self._subscribers.append(callback)
        return callback

    def unsubscribe(self, callback: Subscriber):
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def publish(self, notification: Notification):
        self.history.append(notification)
        del self.history[:-self.max_history_entries]

        for callback in list(self._subscribers):
            try:
                callback(notification)
            except Exception:
                logger.exception("Notification subscriber %r failed", callback)

    def info(self, message: str):
        self.publish(Notification(NotificationLevel.INFO, message))

    def error(self, message: str, error: Optional[BaseException] = None):
        self.publish(Notification(NotificationLevel.ERROR, message, error))
