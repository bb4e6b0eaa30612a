"""Fan-out bus the dialogue controller publishes its events on."""

import asyncio
import contextlib
import logging
from collections.abc import Iterator
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EventBus(Generic[T]):
    """Delivers every published event to each subscriber's own queue.

    The controller publishes from inside its synchronous transition
    function, so ``publish`` never awaits. A subscriber that falls behind
    loses events once its queue holds *maxsize* of them; the losses are
    counted in ``dropped_count`` and never slow down the other subscribers.
    """

    def __init__(self, maxsize: int = 64) -> None:
        self._queues: list[asyncio.Queue[T]] = []
        self._maxsize = maxsize
        self._dropped = 0

    @property
    def subscriber_count(self) -> int:
        return len(self._queues)

    @property
    def dropped_count(self) -> int:
        """Events lost to full subscriber queues since the bus was created."""
        return self._dropped

    def publish(self, event: T) -> None:
        for queue in tuple(self._queues):
            if queue.full():
                self._dropped += 1
                logger.warning(
                    "Dialogue event %s dropped for a lagging subscriber",
                    getattr(event, "type", type(event).__name__),
                )
                continue
            queue.put_nowait(event)

    def subscribe(self) -> asyncio.Queue[T]:
        queue: asyncio.Queue[T] = asyncio.Queue(maxsize=self._maxsize)
        self._queues.append(queue)
        logger.debug("Event subscriber %d attached", len(self._queues))
        return queue

    def unsubscribe(self, queue: asyncio.Queue[T]) -> None:
        """Detach *queue*. Detaching an unknown queue does nothing."""
        if queue not in self._queues:
            return
        self._queues.remove(queue)
        logger.debug("Event subscriber detached, %d left", len(self._queues))

    @contextlib.contextmanager
    def subscription(self) -> Iterator[asyncio.Queue[T]]:
        """Subscribe for the duration of a ``with`` block."""
        queue = self.subscribe()
        try:
            yield queue
        finally:
            self.unsubscribe(queue)
