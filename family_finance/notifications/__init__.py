"""User-facing notification package."""

from family_finance.notifications.notifier import (
    Notification,
    NotificationVariant,
    Notifier,
)

__all__ = ["Notification", "NotificationVariant", "Notifier"]
