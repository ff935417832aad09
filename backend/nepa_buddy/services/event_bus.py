"""In-process publish/subscribe channel for zone status changes.

The tracker publishes after each committed transition; transports (SSE
stream, notification dispatcher) subscribe. Delivery is best effort: a
failing subscriber is logged and skipped.
"""

import asyncio
import logging
import threading
from collections.abc import Callable

from nepa_buddy.schemas.status import StatusChangeEvent

logger = logging.getLogger(__name__)

Subscriber = Callable[[StatusChangeEvent], None]


class StatusEventBus:
    def __init__(self):
        self._subscribers: list[Subscriber] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback; returns a function that removes it."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe():
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def publish(self, event: StatusChangeEvent) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            try:
                callback(event)
            except Exception as e:
                logger.error("Status subscriber %r failed for zone %s: %s", callback, event.zone_id, e)

    def queue_subscription(
        self,
        loop: asyncio.AbstractEventLoop,
        maxsize: int = 100,
    ) -> tuple[asyncio.Queue, Callable[[], None]]:
        """Subscribe an asyncio queue living on `loop`.

        publish() may run in a worker thread, so events are handed over with
        call_soon_threadsafe. A full queue drops the event.
        """
        queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)

        def _put(event: StatusChangeEvent):
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                logger.debug("Realtime subscriber queue full, dropping event for zone %s", event.zone_id)

        def _enqueue(event: StatusChangeEvent):
            loop.call_soon_threadsafe(_put, event)

        return queue, self.subscribe(_enqueue)
