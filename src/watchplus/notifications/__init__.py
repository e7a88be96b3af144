"""Notification subsystem."""

from watchplus.notifications.change_notifier import ChangeNotifier
from watchplus.notifications.stylers import EmailStyler
from watchplus.notifications.types import (
    ChangeNotification,
    EmailMessage,
    EmailTransport,
    NotificationResult,
    NotificationStyler,
    PendingChange,
)

__all__ = [
    "ChangeNotification",
    "ChangeNotifier",
    "EmailMessage",
    "EmailStyler",
    "EmailTransport",
    "NotificationResult",
    "NotificationStyler",
    "PendingChange",
]
