"""Scheduler for periodic workflow events."""

import asyncio
import logging
from collections.abc import Sequence

from makilab.config.models import WorkflowConfig
from makilab.domain.entities.event import Event, EventType
from makilab.infrastructure.events.queue import EventQueue

logger = logging.getLogger(__name__)


class EventScheduler:
    """Fires a WORKFLOW event for each workflow at its own interval.

    Workflows flagged ``run_on_start`` fire once immediately; the others
    fire first after one interval.
    """

    def __init__(self, queue: EventQueue, workflows: Sequence[WorkflowConfig]) -> None:
        """Initialize the scheduler.

        Args:
            queue: The event queue to enqueue events to.
            workflows: Scheduled workflows.
        """
        self._queue = queue
        self._workflows = list(workflows)
        self._stop_event = asyncio.Event()
        self._stop_event.set()  # Initially stopped

    async def start(self) -> None:
        """Run until stop() is called."""
        if not self._stop_event.is_set():
            logger.warning("EventScheduler already running")
            return

        self._stop_event.clear()
        logger.info("EventScheduler started (%d workflow(s))", len(self._workflows))

        loop = asyncio.get_running_loop()
        last_fired: dict[str, float] = {}
        for workflow in self._workflows:
            if workflow.run_on_start:
                await self._enqueue_workflow(workflow)
            last_fired[workflow.name] = loop.time()

        intervals = [w.interval_seconds for w in self._workflows] + [1.0]
        poll_interval = max(min(intervals) / 10, 0.01)

        while not self._stop_event.is_set():
            try:
                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=poll_interval)
                    break
                except asyncio.TimeoutError:
                    pass

                current = loop.time()
                for workflow in self._workflows:
                    if current - last_fired[workflow.name] >= workflow.interval_seconds:
                        await self._enqueue_workflow(workflow)
                        last_fired[workflow.name] = current

            except asyncio.CancelledError:
                break
            except Exception:
                logger.exception("Error in event scheduler")

        logger.info("EventScheduler stopped")

    async def _enqueue_workflow(self, workflow: WorkflowConfig) -> None:
        event = Event(type=EventType.WORKFLOW, payload={"name": workflow.name})
        await self._queue.enqueue(event)
        logger.debug("Enqueued workflow event: %s", workflow.name)

    async def stop(self) -> None:
        """Stop the scheduler."""
        logger.info("Stopping EventScheduler")
        self._stop_event.set()

    @property
    def is_running(self) -> bool:
        return not self._stop_event.is_set()
