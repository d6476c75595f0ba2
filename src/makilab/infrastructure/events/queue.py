"""Event queue for background work."""

import asyncio
import logging

from makilab.domain.entities.event import Event

logger = logging.getLogger(__name__)


class EventQueue:
    """In-memory event queue with identity-key coalescing.

    A pending event is replaced when an event with the same identity key
    is enqueued before it was dequeued. Once an event is being processed,
    a new event with the same key is queued normally and runs afterwards.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[Event] = asyncio.Queue()
        # identity_key -> latest pending event
        self._pending: dict[str, Event] = {}
        # identity_key -> event being processed
        self._processing: dict[str, Event] = {}

    async def enqueue(self, event: Event) -> None:
        """Add an event, replacing a pending event with the same key.

        Args:
            event: The event to enqueue.
        """
        identity_key = event.get_identity_key()
        if identity_key in self._pending:
            logger.debug("Replacing pending event: key=%s", identity_key)
        # The replaced event stays in the asyncio queue and is skipped on dequeue
        self._pending[identity_key] = event
        await self._queue.put(event)

    async def dequeue(self) -> Event:
        """Get the next current event, skipping replaced ones.

        Blocks until an event is available.

        Returns:
            The next event to process.
        """
        while True:
            event = await self._queue.get()
            if self._pending.get(event.get_identity_key()) is event:
                return event
            self._queue.task_done()

    def dequeue_nowait(self) -> Event | None:
        """Get the next current event without waiting.

        Returns:
            The next event, or None when nothing is pending.
        """
        while True:
            try:
                event = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                return None
            if self._pending.get(event.get_identity_key()) is event:
                return event
            self._queue.task_done()

    def discard(self, event: Event) -> None:
        """Drop a dequeued event without processing it."""
        identity_key = event.get_identity_key()
        if self._pending.get(identity_key) is event:
            self._pending.pop(identity_key)
        self._queue.task_done()
        logger.debug("Event discarded: %s", identity_key)

    def mark_processing(self, event: Event) -> None:
        """Move an event from pending to processing."""
        identity_key = event.get_identity_key()
        self._pending.pop(identity_key, None)
        self._processing[identity_key] = event
        logger.debug("Event marked as processing: %s", identity_key)

    def mark_done(self, event: Event) -> None:
        """Mark an event as done processing."""
        identity_key = event.get_identity_key()
        if self._processing.get(identity_key) is event:
            self._processing.pop(identity_key)
        self._queue.task_done()
        logger.debug("Event marked as done: %s", identity_key)

    def is_pending(self, identity_key: str) -> bool:
        return identity_key in self._pending

    def is_processing(self, identity_key: str) -> bool:
        return identity_key in self._processing

    @property
    def pending_count(self) -> int:
        """Number of events waiting to be processed."""
        return len(self._pending)

    async def join(self) -> None:
        """Wait until every queued event has been processed or skipped."""
        await self._queue.join()

    def clear(self) -> None:
        """Drop every pending event."""
        self._pending.clear()
        self._processing.clear()
        logger.info("EventQueue cleared")
