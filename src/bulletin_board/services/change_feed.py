"""Row-level change feed for pushing inserts and updates to live clients.

Writers publish a :class:`ChangeEvent` after their transaction commits.
Readers acquire a :class:`Subscription` filtered by table and column
equality (typically ``user_id``) and consume events from it::

    async with feed.subscribe("notification", user_id=42) as subscription:
        async for event in subscription:
            ...

Leaving the ``async with`` block always releases the subscription.
:meth:`ChangeFeed.close` ends every open subscription on shutdown.

Two backends exist: :class:`InMemoryChangeFeed` for a single process and
:class:`RedisChangeFeed` which relays events through Redis pub/sub so every
API worker sees every write.
"""

from __future__ import annotations

import asyncio
import json
import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from functools import lru_cache, partial
from typing import Any, Literal

import redis
import redis.asyncio as aioredis

from bulletin_board.core.settings import settings
from bulletin_board.db.time import utcnow

logger = logging.getLogger(__name__)

EventKind = Literal["INSERT", "UPDATE"]

CHANNEL_PREFIX = "changes"


@dataclass(frozen=True)
class ChangeEvent:
    """A committed insert or update of one row."""

    table: str
    event: EventKind
    new: dict[str, Any]
    old: dict[str, Any] | None = None
    commit_timestamp: str = field(default_factory=lambda: utcnow().isoformat())

    def to_dict(self) -> dict[str, Any]:
        return {
            "table": self.table,
            "event": self.event,
            "new": self.new,
            "old": self.old,
            "commit_timestamp": self.commit_timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChangeEvent:
        return cls(
            table=data["table"],
            event=data["event"],
            new=data.get("new") or {},
            old=data.get("old"),
            commit_timestamp=data.get("commit_timestamp") or utcnow().isoformat(),
        )


class Subscription:
    """Handle on a filtered stream of change events.

    Instances are created by :meth:`ChangeFeed.subscribe` and must be used as
    async context managers; events are only delivered while acquired.
    """

    def __init__(
        self,
        feed: ChangeFeed,
        table: str,
        filters: dict[str, Any],
        queue_size: int,
    ) -> None:
        self.feed = feed
        self.table = table
        self.filters = dict(filters)
        self._queue: asyncio.Queue[ChangeEvent | None] = asyncio.Queue(maxsize=queue_size)
        self._loop: asyncio.AbstractEventLoop | None = None
        self._closed = False
        self.dropped = 0

    @property
    def active(self) -> bool:
        return self._loop is not None and not self._closed

    def matches(self, event: ChangeEvent) -> bool:
        """Return True when ``event`` belongs to this subscription's table and filter."""
        if event.table != self.table:
            return False
        return all(event.new.get(column) == value for column, value in self.filters.items())

    async def __aenter__(self) -> Subscription:
        if self._loop is not None:
            raise RuntimeError("Subscription already acquired")
        self._loop = asyncio.get_running_loop()
        await self.feed._attach(self)
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self._closed = True
        await self.feed._detach(self)

    def deliver(self, event: ChangeEvent | None) -> None:
        """Hand an event (or the end-of-stream marker) to the owning event loop.

        Safe to call from any thread.
        """
        loop = self._loop
        if loop is None or self._closed:
            return
        try:
            loop.call_soon_threadsafe(self._offer, event)
        except RuntimeError:
            # Owning loop has shut down; nothing left to deliver to.
            self._closed = True

    def end(self) -> None:
        """Finish the stream from the owning loop; queued events stay readable."""
        if self._closed:
            return
        self._offer(None)
        self._closed = True

    def _offer(self, event: ChangeEvent | None) -> None:
        if self._queue.full():
            self._queue.get_nowait()
            self.dropped += 1
            logger.warning(
                "Change feed subscription on %s %s overflowed; dropped oldest event",
                self.table,
                self.filters,
            )
        self._queue.put_nowait(event)

    async def get(self) -> ChangeEvent | None:
        """Wait for the next event; None means the feed has been closed."""
        if self._closed and self._queue.empty():
            return None
        event = await self._queue.get()
        if event is None:
            self._closed = True
        return event

    def __aiter__(self) -> AsyncIterator[ChangeEvent]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[ChangeEvent]:
        while True:
            event = await self.get()
            if event is None:
                return
            yield event


class ChangeFeed(ABC):
    """Base class holding subscription bookkeeping shared by backends."""

    def __init__(self, queue_size: int | None = None) -> None:
        self.queue_size = queue_size or settings.change_feed_queue_size
        self._subscriptions: set[Subscription] = set()
        self._lock = threading.Lock()

    def subscribe(self, table: str, **filters: Any) -> Subscription:
        """Create a subscription handle for ``table`` rows matching ``filters``."""
        return Subscription(self, table, filters, self.queue_size)

    def active_subscriptions(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def _snapshot(self) -> list[Subscription]:
        with self._lock:
            return list(self._subscriptions)

    async def _attach(self, subscription: Subscription) -> None:
        with self._lock:
            self._subscriptions.add(subscription)
        logger.debug("Subscribed to %s %s", subscription.table, subscription.filters)

    async def _detach(self, subscription: Subscription) -> None:
        with self._lock:
            self._subscriptions.discard(subscription)
        logger.debug("Unsubscribed from %s %s", subscription.table, subscription.filters)

    def _dispatch(self, event: ChangeEvent) -> int:
        delivered = 0
        for subscription in self._snapshot():
            if subscription.matches(event):
                subscription.deliver(event)
                delivered += 1
        return delivered

    @abstractmethod
    def publish(self, event: ChangeEvent) -> None:
        """Deliver a committed change to matching subscriptions."""

    async def close(self) -> None:
        """End every open subscription."""
        subscriptions = self._snapshot()
        for subscription in subscriptions:
            subscription.deliver(None)
        if subscriptions:
            logger.info("Change feed closed %d live subscription(s)", len(subscriptions))


class InMemoryChangeFeed(ChangeFeed):
    """Process-local change feed."""

    def publish(self, event: ChangeEvent) -> None:
        delivered = self._dispatch(event)
        logger.debug("Published %s on %s to %d subscriber(s)", event.event, event.table, delivered)


class RedisChangeFeed(ChangeFeed):
    """Change feed relayed through Redis pub/sub.

    Events are published on ``changes:<table>``; each subscription runs its
    own pub/sub reader and applies its column filter locally.
    """

    def __init__(self, url: str | None = None, queue_size: int | None = None) -> None:
        super().__init__(queue_size)
        self.url = url or settings.redis_url
        self._client = redis.Redis.from_url(self.url)
        self._readers: dict[Subscription, tuple[asyncio.Task[None], Any, Any]] = {}

    @staticmethod
    def channel_for(table: str) -> str:
        return f"{CHANNEL_PREFIX}:{table}"

    def publish(self, event: ChangeEvent) -> None:
        try:
            self._client.publish(self.channel_for(event.table), json.dumps(event.to_dict()))
        except redis.RedisError as exc:
            # The row is already committed; clients catch up on their next list fetch.
            logger.error("Failed to publish %s on %s: %s", event.event, event.table, exc)

    async def _attach(self, subscription: Subscription) -> None:
        client = aioredis.Redis.from_url(self.url)
        pubsub = client.pubsub(ignore_subscribe_messages=True)
        await pubsub.subscribe(self.channel_for(subscription.table))
        task = asyncio.create_task(self._read(subscription, pubsub))
        task.add_done_callback(partial(self._reader_done, subscription))
        self._readers[subscription] = (task, pubsub, client)
        await super()._attach(subscription)

    @staticmethod
    def _reader_done(subscription: Subscription, task: asyncio.Task[None]) -> None:
        """End the subscription's stream when its reader stops on its own."""
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "Change feed reader for %s %s stopped: %s",
                subscription.table,
                subscription.filters,
                exc,
            )
        subscription.end()

    async def _detach(self, subscription: Subscription) -> None:
        await super()._detach(subscription)
        reader = self._readers.pop(subscription, None)
        if reader is None:
            return
        task, pubsub, client = reader
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception:
            # Already reported by _reader_done.
            pass
        finally:
            try:
                await pubsub.unsubscribe()
            except redis.RedisError as exc:
                logger.warning("Unsubscribing from %s failed: %s", subscription.table, exc)
            await pubsub.aclose()
            await client.aclose()

    async def _read(self, subscription: Subscription, pubsub: Any) -> None:
        async for message in pubsub.listen():
            if message.get("type") != "message":
                continue
            try:
                event = ChangeEvent.from_dict(json.loads(message["data"]))
            except (ValueError, KeyError, TypeError) as exc:
                logger.warning("Ignoring malformed change event: %s", exc)
                continue
            if subscription.matches(event):
                subscription.deliver(event)

    async def close(self) -> None:
        await super().close()
        self._client.close()


@lru_cache(maxsize=1)
def get_change_feed() -> ChangeFeed:
    """Return the process-wide change feed for the configured backend."""
    if settings.change_feed_backend == "redis":
        logger.info("Using Redis change feed at %s", settings.redis_url)
        return RedisChangeFeed()
    return InMemoryChangeFeed()
