"""
Event Bus
Per-user publish/subscribe channels for lifecycle events.
"""

import asyncio
from collections.abc import Iterable
from typing import Any

from core import get_logger
from models.events import EventPayload, LifecycleEvent, Topic
from monitoring import metrics_collector

logger = get_logger(__name__)

_CLOSED = object()


def channel_for_user(user_id: str) -> str:
    """Channel name for a user's events."""
    return f"user:{user_id}"


class Subscription:
    """
    One subscriber's view of a channel.

    Iterate with ``async for``; iteration ends after ``close()``. Events are
    buffered in a bounded queue and dropped when it is full.
    """

    def __init__(
        self,
        bus: "EventBus",
        channel: str,
        topics: Iterable[Topic | str] | None = None,
        maxsize: int = 256,
    ) -> None:
        self.bus = bus
        self.channel = channel
        self.topics = frozenset(Topic(t) for t in topics) if topics else None
        self._queue: asyncio.Queue[Any] = asyncio.Queue(maxsize=maxsize)
        self.closed = False
        self.dropped = 0

    def accepts(self, event: LifecycleEvent) -> bool:
        return self.topics is None or event.topic in self.topics

    def offer(self, event: LifecycleEvent) -> bool:
        """Enqueue without waiting; False if the event was dropped."""
        if self.closed:
            return False
        try:
            self._queue.put_nowait(event)
            return True
        except asyncio.QueueFull:
            self.dropped += 1
            return False

    async def get(self) -> LifecycleEvent:
        item = await self._queue.get()
        if item is _CLOSED:
            # keep the sentinel for any other waiter
            self._queue.put_nowait(_CLOSED)
            raise StopAsyncIteration
        return item

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.bus._remove(self)
        # make room for the sentinel so a blocked reader wakes up
        while self._queue.full():
            self._queue.get_nowait()
        self._queue.put_nowait(_CLOSED)

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> LifecycleEvent:
        return await self.get()

    async def __aenter__(self) -> "Subscription":
        return self

    async def __aexit__(self, *args: Any) -> None:
        self.close()


class EventBus:
    """
    In-process message bus keyed by channel name.

    A channel exists only while it has subscribers. Publishing never blocks
    and never fails because of a slow subscriber; there is no replay, so a
    late subscriber must bootstrap from the Frame Store.
    """

    def __init__(self, queue_size: int = 256) -> None:
        self.queue_size = queue_size
        self._channels: dict[str, set[Subscription]] = {}

    def subscribe(self, channel: str, topics: Iterable[Topic | str] | None = None) -> Subscription:
        subscription = Subscription(self, channel, topics, maxsize=self.queue_size)
        self._channels.setdefault(channel, set()).add(subscription)
        metrics_collector.active_subscriptions.inc()
        logger.debug("subscribed", channel=channel, subscribers=len(self._channels[channel]))
        return subscription

    async def publish(self, channel: str, topic: Topic | str, payload: EventPayload) -> LifecycleEvent:
        event = LifecycleEvent(channel=channel, topic=Topic(topic), payload=payload)
        metrics_collector.record_event_published(event.topic.value)

        subscribers = list(self._channels.get(channel, ()))
        for subscription in subscribers:
            if not subscription.accepts(event):
                continue
            if not subscription.offer(event):
                metrics_collector.record_event_dropped(event.topic.value)
                logger.warning("event_dropped", channel=channel, topic=event.topic.value)

        logger.debug("published", channel=channel, topic=event.topic.value, subscribers=len(subscribers))
        return event

    def subscriber_count(self, channel: str) -> int:
        return len(self._channels.get(channel, ()))

    def channels(self) -> list[str]:
        return list(self._channels)

    def _remove(self, subscription: Subscription) -> None:
        subscribers = self._channels.get(subscription.channel)
        if not subscribers or subscription not in subscribers:
            return
        subscribers.discard(subscription)
        metrics_collector.active_subscriptions.dec()
        if not subscribers:
            del self._channels[subscription.channel]
            logger.debug("channel_closed", channel=subscription.channel)
