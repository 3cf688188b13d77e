"""Service layer for Schedule Widget."""

from .notifications import Notification, NotificationLevel, Notifier

__all__ = [
    "Notification",
    "NotificationLevel",
    "Notifier",
]
