"""
Real-time change feed.

Subscribers register for one table, optionally narrowed by equality
predicates (normally the owning key), and are called after every
matching insert, update or delete. A subscriber's only job is to
re-list; events are notifications, not patches.

A `ChangeSubscription` is a context manager. Leaving the block (or
calling `close()`) releases the listener; closing twice is harmless.
The feed holds subscriptions weakly, so a listener also goes away once
nobody keeps its handle.
"""

import inspect
import itertools
import weakref
from enum import Enum
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

import structlog
from pydantic import BaseModel, Field

logger = structlog.get_logger(__name__)


class ChangeType(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class ChangeEvent(BaseModel):
    """One row-level change."""

    table: str
    change_type: ChangeType
    new: Optional[dict[str, Any]] = None
    old: Optional[dict[str, Any]] = None
    metadata: dict[str, Any] = Field(default_factory=dict)


ChangeCallback = Callable[[ChangeEvent], Union[None, Awaitable[None]]]


class ChangeSubscription:
    """Handle for one registered listener."""

    def __init__(
        self,
        feed: "ChangeFeed",
        table: str,
        callback: ChangeCallback,
        filters: Optional[Mapping[str, Any]] = None,
    ):
        self._feed = feed
        self.table = table
        self.filters = dict(filters or {})
        self._callback = callback
        self._closed = False
        self.key: Optional[int] = None

    @property
    def closed(self) -> bool:
        return self._closed

    def matches(self, event: ChangeEvent) -> bool:
        if self._closed or event.table != self.table:
            return False
        if not self.filters:
            return True
        for row in (event.new, event.old):
            if row and all(row.get(k) == v for k, v in self.filters.items()):
                return True
        return False

    async def deliver(self, event: ChangeEvent) -> None:
        result = self._callback(event)
        if inspect.isawaitable(result):
            await result

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._feed._remove(self)

    def __enter__(self) -> "ChangeSubscription":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    async def __aenter__(self) -> "ChangeSubscription":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()


class ChangeFeed:
    """In-process publish/subscribe hub for row changes."""

    def __init__(self):
        # insertion-ordered; entries vanish when their handle is collected
        self._subscriptions: weakref.WeakValueDictionary[int, ChangeSubscription] = weakref.WeakValueDictionary()
        self._keys = itertools.count()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(
        self,
        table: str,
        callback: ChangeCallback,
        filters: Optional[Mapping[str, Any]] = None,
    ) -> ChangeSubscription:
        subscription = ChangeSubscription(self, table, callback, filters)
        subscription.key = next(self._keys)
        self._subscriptions[subscription.key] = subscription
        logger.debug("change_feed_subscribed", table=table, filters=subscription.filters)
        return subscription

    def _remove(self, subscription: ChangeSubscription) -> None:
        if self._subscriptions.pop(subscription.key, None) is not None:
            logger.debug("change_feed_unsubscribed", table=subscription.table)

    async def publish(self, event: ChangeEvent) -> int:
        """
        Deliver an event to every matching subscriber.

        A failing subscriber is logged and skipped; it never fails the
        write that produced the event.

        Returns:
            Number of subscribers that received the event
        """
        delivered = 0
        # copy: callbacks may close their own subscription
        for subscription in list(self._subscriptions.values()):
            if not subscription.matches(event):
                continue
            try:
                await subscription.deliver(event)
                delivered += 1
            except Exception as e:
                logger.error(
                    "change_feed_delivery_failed",
                    table=event.table,
                    change_type=event.change_type.value,
                    error=str(e),
                )
        return delivered
