"""Row-change publish/subscribe hub.

Repositories publish an event after each committed insert or update on a
watched table. Subscribers register an equality filter over the row's
columns and receive matching events, in commit order, through their own
queue and delivery task.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Set
from uuid import UUID

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"


@dataclass(frozen=True)
class ChangeEvent:
    """A committed change to one row of a watched table."""

    table: str
    event_type: EventType
    row: BaseModel


ChangeCallback = Callable[[ChangeEvent], Awaitable[None]]


class Subscription:
    """Live feed of matching change events for one subscriber."""

    def __init__(
        self,
        feed: "ChangeFeed",
        table: str,
        filters: Mapping[str, Any],
        event_types: Iterable[EventType],
        callback: ChangeCallback,
        coalesce: bool = False,
    ):
        self.feed = feed
        self.table = table
        self.filters = dict(filters)
        self.event_types = frozenset(EventType(e) for e in event_types)
        self.callback = callback
        self.coalesce = coalesce
        self.closed = False
        self._queue: "asyncio.Queue[ChangeEvent]" = asyncio.Queue()
        self._task: Optional["asyncio.Task[None]"] = None

    def start(self) -> None:
        self._task = asyncio.get_running_loop().create_task(self._deliver())

    def matches(self, event: ChangeEvent) -> bool:
        if event.table != self.table or event.event_type not in self.event_types:
            return False
        return all(
            getattr(event.row, column, None) == value
            for column, value in self.filters.items()
        )

    def offer(self, event: ChangeEvent) -> None:
        if not self.closed:
            self._queue.put_nowait(event)

    async def _deliver(self) -> None:
        while not self.closed:
            event = await self._queue.get()
            if self.coalesce:
                # Only the newest pending event matters to coalescing consumers
                while not self._queue.empty():
                    event = self._queue.get_nowait()
            try:
                await self.callback(event)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.warning(
                    "Subscriber on %s %s failed; closing subscription",
                    self.table,
                    self.filters,
                    exc_info=True,
                )
                self._detach()
                return

    def _detach(self) -> None:
        self.closed = True
        self.feed._remove(self)

    async def close(self) -> None:
        """Stop delivery; events still queued are dropped."""
        if self.closed and self._task is None:
            return
        self._detach()
        task, self._task = self._task, None
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass


class ChangeFeed:
    """In-process hub routing row changes to subscriptions by table."""

    def __init__(self) -> None:
        self._subscriptions: Dict[str, List[Subscription]] = {}

    async def subscribe(
        self,
        table: str,
        filters: Mapping[str, Any],
        event_types: Iterable[EventType],
        callback: ChangeCallback,
        coalesce: bool = False,
    ) -> Subscription:
        subscription = Subscription(
            self, table, filters, event_types, callback, coalesce=coalesce
        )
        self._subscriptions.setdefault(table, []).append(subscription)
        subscription.start()
        return subscription

    async def publish(
        self, table: str, event_type: EventType, rows: Iterable[BaseModel]
    ) -> None:
        """Route committed rows to every matching subscription."""
        for row in rows:
            event = ChangeEvent(table=table, event_type=event_type, row=row)
            for subscription in list(self._subscriptions.get(table, [])):
                if subscription.matches(event):
                    subscription.offer(event)

    def subscriber_count(self, table: Optional[str] = None) -> int:
        if table is not None:
            return len(self._subscriptions.get(table, []))
        return sum(len(subs) for subs in self._subscriptions.values())

    def _remove(self, subscription: Subscription) -> None:
        subs = self._subscriptions.get(subscription.table)
        if subs and subscription in subs:
            subs.remove(subscription)
            if not subs:
                del self._subscriptions[subscription.table]


class DedupingCallback:
    """Drop redelivered rows, keyed by the row's id."""

    def __init__(self, callback: Callable[[Any], Awaitable[None]]):
        self.callback = callback
        self.seen: Set[UUID] = set()

    async def __call__(self, row: Any) -> None:
        row_id = getattr(row, "id", None)
        if row_id is not None:
            if row_id in self.seen:
                return
            self.seen.add(row_id)
        await self.callback(row)


_feed: Optional[ChangeFeed] = None


def get_change_feed() -> ChangeFeed:
    """Process-wide feed shared by repositories and live endpoints."""
    global _feed
    if _feed is None:
        _feed = ChangeFeed()
    return _feed
