"""
User-facing notifications.

Every create/update/delete (success and failure), every access denial
and every fetch error produces exactly one notification. The UI drains
them and shows each as a toast.
"""

from collections import deque
from datetime import datetime, timezone
from enum import Enum

import structlog
from pydantic import BaseModel, Field

logger = structlog.get_logger(__name__)


class NotificationVariant(str, Enum):
    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


class Notification(BaseModel):
    """A toast: title plus one line of description."""

    title: str
    description: str = ""
    variant: NotificationVariant = NotificationVariant.DEFAULT
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_error(self) -> bool:
        return self.variant == NotificationVariant.DESTRUCTIVE


class Notifier:
    """Ordered queue of pending notifications."""

    def __init__(self, max_pending: int = 100):
        self._pending: deque[Notification] = deque(maxlen=max_pending)

    def notify(
        self,
        title: str,
        description: str = "",
        variant: NotificationVariant = NotificationVariant.DEFAULT,
    ) -> Notification:
        notification = Notification(title=title, description=description, variant=variant)
        self._pending.append(notification)
        logger.info(
            "notification",
            title=title,
            description=description,
            variant=variant.value,
        )
        return notification

    def success(self, title: str, description: str = "") -> Notification:
        return self.notify(title, description)

    def error(self, title: str, description: str = "") -> Notification:
        return self.notify(title, description, NotificationVariant.DESTRUCTIVE)

    @property
    def pending(self) -> list[Notification]:
        return list(self._pending)

    def drain(self) -> list[Notification]:
        """Return and forget every pending notification."""
        drained = list(self._pending)
        self._pending.clear()
        return drained
