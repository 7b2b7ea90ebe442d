"""In-process publish/subscribe for generation row updates.

Subscriptions are keyed by generation id. A subscription only lives inside
the ``subscribe`` context, so a closed viewer never keeps receiving events.
Delivery is at-least-once: consumers de-duplicate with
:class:`~valida.realtime.tracker.ImageUrlTracker`.
"""

import asyncio
import logging
import threading
from collections import defaultdict
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from functools import lru_cache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationEvent:
    """Snapshot of the fields a viewer cares about after a row update."""

    generation_id: str
    image_url: str | None
    status: str | None = None


class Subscription:
    """Queue of events for one viewer of one generation."""

    def __init__(self, generation_id: str, loop: asyncio.AbstractEventLoop):
        self.generation_id = generation_id
        self._loop = loop
        self._queue: asyncio.Queue[GenerationEvent] = asyncio.Queue()

    def deliver(self, event: GenerationEvent) -> None:
        """Enqueue an event, from the subscriber's loop or any other thread."""
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is self._loop:
            self._queue.put_nowait(event)
        else:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, event)

    async def get(self) -> GenerationEvent:
        return await self._queue.get()

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> GenerationEvent:
        return await self.get()


class GenerationEventBroker:
    """Routes published events to the live subscriptions of a generation."""

    def __init__(self) -> None:
        self._subscriptions: dict[str, set[Subscription]] = defaultdict(set)
        self._lock = threading.Lock()

    @asynccontextmanager
    async def subscribe(self, generation_id: str) -> AsyncIterator[Subscription]:
        """Subscribe to one generation for the duration of the context.

        Example:
            async with broker.subscribe(generation_id) as subscription:
                async for event in subscription:
                    ...
        """
        subscription = Subscription(generation_id, asyncio.get_running_loop())
        with self._lock:
            self._subscriptions[generation_id].add(subscription)
        try:
            yield subscription
        finally:
            with self._lock:
                subscribers = self._subscriptions.get(generation_id)
                if subscribers is not None:
                    subscribers.discard(subscription)
                    if not subscribers:
                        del self._subscriptions[generation_id]

    def publish(self, event: GenerationEvent) -> int:
        """Deliver an event to every live subscription of its generation.

        Returns:
            Number of subscriptions the event was delivered to
        """
        with self._lock:
            subscribers = list(self._subscriptions.get(event.generation_id, ()))
        for subscription in subscribers:
            subscription.deliver(event)
        if subscribers:
            logger.debug(
                "Published generation event to %d subscribers",
                len(subscribers),
                extra={"generation_id": event.generation_id},
            )
        return len(subscribers)

    def subscriber_count(self, generation_id: str) -> int:
        with self._lock:
            return len(self._subscriptions.get(generation_id, ()))


@lru_cache
def get_event_broker() -> GenerationEventBroker:
    """Get the process-wide event broker."""
    return GenerationEventBroker()
