"""
In-process change notifications.

The bus carries bare topic tags only; subscribers re-query whatever state
they care about. One bus lives on ``app.state`` for the lifetime of the
process and is handed to request handlers through a dependency.
"""
import asyncio
from collections import defaultdict
from enum import Enum
from functools import partial
from typing import AsyncIterator, Awaitable, Callable, Optional

from stockledger.logging_config import get_logger

logger = get_logger("events")

Handler = Callable[[], None]


class EventTopic(str, Enum):
    """Things that can change."""
    STOCK_MOVEMENT_CREATED = "STOCK_MOVEMENT_CREATED"
    SALE_CREATED = "SALE_CREATED"
    PRODUCT_CREATED = "PRODUCT_CREATED"
    PRODUCT_UPDATED = "PRODUCT_UPDATED"
    PRODUCT_DELETED = "PRODUCT_DELETED"


class EventBus:
    """Synchronous publish/subscribe keyed by topic."""

    def __init__(self):
        self._handlers: dict[EventTopic, list[Handler]] = defaultdict(list)

    def subscribe(self, topic: EventTopic, handler: Handler) -> Callable[[], None]:
        """
        Register ``handler`` for ``topic``.

        Returns a function that removes this registration. Calling it more
        than once is harmless.
        """
        topic = EventTopic(topic)
        handlers = self._handlers[topic]
        handlers.append(handler)
        active = True

        def unsubscribe() -> None:
            nonlocal active
            if active:
                active = False
                handlers.remove(handler)

        return unsubscribe

    def publish(self, topic: EventTopic) -> None:
        """Invoke every handler currently subscribed to ``topic``."""
        topic = EventTopic(topic)
        # Copy so handlers may unsubscribe while we iterate
        for handler in list(self._handlers.get(topic, ())):
            try:
                handler()
            except Exception:
                logger.exception(f"Event handler failed for {topic.value}")

    def subscriber_count(self, topic: Optional[EventTopic] = None) -> int:
        if topic is not None:
            return len(self._handlers.get(EventTopic(topic), ()))
        return sum(len(handlers) for handlers in self._handlers.values())

    def clear(self) -> None:
        self._handlers.clear()


async def event_stream(
    bus: EventBus,
    is_disconnected: Callable[[], Awaitable[bool]],
    keepalive_seconds: float = 15.0
) -> AsyncIterator[str]:
    """
    Server-sent events for every topic on ``bus``.

    Yields ``data: <TOPIC>`` frames as topics are published and a comment
    frame whenever ``keepalive_seconds`` pass quietly. All subscriptions are
    removed when the client goes away or the generator is closed.
    """
    queue: asyncio.Queue[str] = asyncio.Queue()
    unsubscribers = [
        bus.subscribe(topic, partial(queue.put_nowait, topic.value))
        for topic in EventTopic
    ]
    logger.debug(f"Event stream opened ({bus.subscriber_count()} subscriptions)")

    try:
        yield ": connected\n\n"
        while not await is_disconnected():
            try:
                topic = await asyncio.wait_for(queue.get(), timeout=keepalive_seconds)
            except asyncio.TimeoutError:
                yield ": keep-alive\n\n"
                continue
            yield f"data: {topic}\n\n"
    finally:
        for unsubscribe in unsubscribers:
            unsubscribe()
        logger.debug(f"Event stream closed ({bus.subscriber_count()} subscriptions left)")
