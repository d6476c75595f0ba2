"""Sequential background event loop."""

import asyncio
import logging
from collections.abc import Collection

from makilab.domain.entities.event import Event, EventType
from makilab.infrastructure.events.dispatcher import EventDispatcher
from makilab.infrastructure.events.queue import EventQueue

logger = logging.getLogger(__name__)

# Events that would lose conversation data if dropped at shutdown
MEMORY_EVENT_TYPES: frozenset[EventType] = frozenset(
    {EventType.FACT_EXTRACTION, EventType.SEMANTIC_INDEX, EventType.COMPACTION}
)


class EventLoop:
    """Dequeues events and dispatches them one at a time.

    Because processing is sequential, at most one event per identity key
    is ever in flight. On a graceful stop, the events still pending whose
    type is in ``drain_types`` are processed before the loop returns,
    within ``drain_timeout`` seconds; every other pending event is dropped.
    """

    def __init__(
        self,
        queue: EventQueue,
        dispatcher: EventDispatcher,
        drain_timeout: float = 0.0,
        drain_types: Collection[EventType] = MEMORY_EVENT_TYPES,
    ) -> None:
        """Initialize the event loop.

        Args:
            queue: The event queue to read from.
            dispatcher: The dispatcher to send events to.
            drain_timeout: Seconds allowed to drain pending events on stop.
            drain_types: Event types worth finishing on stop.
        """
        self._queue = queue
        self._dispatcher = dispatcher
        self._drain_timeout = drain_timeout
        self._drain_types = frozenset(drain_types)
        self._stop_event = asyncio.Event()
        self._stop_event.set()  # Initially stopped

    async def start(self) -> None:
        """Run until stop() is called, then drain."""
        if not self._stop_event.is_set():
            logger.warning("EventLoop already running")
            return

        self._stop_event.clear()
        logger.info("EventLoop started")
        cancelled = False

        while not self._stop_event.is_set():
            try:
                try:
                    # Timeout so that stop() is noticed while idle
                    event = await asyncio.wait_for(self._queue.dequeue(), timeout=1.0)
                except asyncio.TimeoutError:
                    continue
                await self._process(event)

            except asyncio.CancelledError:
                cancelled = True
                break
            except Exception:
                logger.exception("Error in event loop")

        if not cancelled:
            await self._drain()
        self._queue.clear()
        self._stop_event.set()
        logger.info("EventLoop stopped")

    async def stop(self) -> None:
        """Ask the loop to stop; start() returns once draining is over."""
        logger.info("Stopping EventLoop")
        was_running = self.is_running
        self._stop_event.set()
        if not was_running:
            self._queue.clear()

    @property
    def is_running(self) -> bool:
        return not self._stop_event.is_set()

    async def _process(self, event: Event) -> None:
        logger.debug("Processing event: %s", event.type.value)
        self._queue.mark_processing(event)
        try:
            await self._dispatcher.dispatch(event)
        finally:
            self._queue.mark_done(event)

    async def _drain(self) -> None:
        if self._drain_timeout <= 0:
            return
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._drain_timeout
        drained = 0

        while (event := self._queue.dequeue_nowait()) is not None:
            if event.type not in self._drain_types:
                self._queue.discard(event)
                continue
            remaining = deadline - loop.time()
            if remaining <= 0:
                self._queue.discard(event)
                logger.warning(
                    "Drain timeout: %d pending events dropped",
                    self._queue.pending_count + 1,
                )
                return
            try:
                await asyncio.wait_for(self._process(event), timeout=remaining)
            except asyncio.TimeoutError:
                logger.warning("Drain timeout while processing %s", event.type.value)
                return
            except Exception:
                logger.exception("Error while draining %s", event.type.value)
            drained += 1

        if drained:
            logger.info("Drained %d pending events", drained)
