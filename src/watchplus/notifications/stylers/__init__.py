"""Notification stylers."""

from watchplus.notifications.stylers.email_styler import EmailStyler

__all__ = ["EmailStyler"]
