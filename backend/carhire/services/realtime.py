"""In-process table change feed.

The SQL backend publishes a ``ChangeEvent`` after every committed write;
subscribers register per table and get every event for it (no row
filtering). ``TableWatcher`` scopes a subscription to an ``async with`` block.
"""

import asyncio
import inspect
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from functools import lru_cache
from typing import Any, Awaitable, Callable, Optional, Union
from uuid import UUID

from carhire.models.enums import ChangeType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangeEvent:
    """A committed row change."""

    table: str
    change_type: ChangeType
    record_id: Optional[UUID] = None
    occurred_at: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "table": self.table,
            "change_type": self.change_type.value,
            "record_id": str(self.record_id) if self.record_id else None,
            "occurred_at": self.occurred_at.isoformat(),
        }


ChangeCallback = Callable[[ChangeEvent], Union[None, Awaitable[None]]]


class Subscription:
    """Handle returned by ``ChangeFeed.subscribe``."""

    def __init__(self, feed: "ChangeFeed", table: str, callback: ChangeCallback):
        self.feed = feed
        self.table = table
        self.callback = callback
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self.feed._remove(self)
            self.active = False


class ChangeFeed:
    """Publish/subscribe fan-out keyed by table name."""

    def __init__(self):
        self._subscriptions: dict[str, list[Subscription]] = defaultdict(list)

    def subscribe(self, table: str, callback: ChangeCallback) -> Subscription:
        subscription = Subscription(self, table, callback)
        self._subscriptions[table].append(subscription)
        logger.debug(f"[REALTIME] Subscribed to {table} ({len(self._subscriptions[table])} active)")
        return subscription

    def subscriber_count(self, table: str) -> int:
        return len(self._subscriptions.get(table, []))

    async def publish(self, event: ChangeEvent) -> None:
        """Deliver ``event`` to every subscriber of its table.

        A failing subscriber is logged and skipped; the write that produced
        the event has already been committed.
        """
        for subscription in list(self._subscriptions.get(event.table, [])):
            try:
                result = subscription.callback(event)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"[REALTIME] Subscriber for {event.table} failed: {e}")

    def _remove(self, subscription: Subscription) -> None:
        subscribers = self._subscriptions.get(subscription.table, [])
        if subscription in subscribers:
            subscribers.remove(subscription)


class TableWatcher:
    """Queue of change events for one table, subscribed only inside ``async with``."""

    def __init__(self, feed: ChangeFeed, table: str):
        self.feed = feed
        self.table = table
        self._queue: asyncio.Queue[ChangeEvent] = asyncio.Queue()
        self._subscription: Optional[Subscription] = None

    async def __aenter__(self) -> "TableWatcher":
        self._subscription = self.feed.subscribe(self.table, self._queue.put_nowait)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._subscription:
            self._subscription.unsubscribe()
            self._subscription = None

    async def next_change(self, timeout: Optional[float] = None) -> Optional[ChangeEvent]:
        """Wait for the next event; ``None`` on timeout."""
        try:
            return await asyncio.wait_for(self._queue.get(), timeout=timeout)
        except asyncio.TimeoutError:
            return None


@lru_cache
def get_change_feed() -> ChangeFeed:
    """Process-wide change feed."""
    return ChangeFeed()
