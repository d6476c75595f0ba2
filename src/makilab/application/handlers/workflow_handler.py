"""Workflow event handler."""

import logging

from makilab.application.use_cases.run_workflow import RunWorkflowUseCase
from makilab.domain.entities.event import Event, EventType
from makilab.infrastructure.events.dispatcher import event_handler

logger = logging.getLogger(__name__)


class WorkflowEventHandler:
    """Handler for WORKFLOW events.

    Runs the named workflow.
    """

    def __init__(self, run_workflow_use_case: RunWorkflowUseCase) -> None:
        """Initialize the handler.

        Args:
            run_workflow_use_case: Use case running scheduled workflows.
        """
        self._run_workflow_use_case = run_workflow_use_case

    @event_handler(EventType.WORKFLOW)
    async def handle(self, event: Event) -> None:
        """Handle WORKFLOW event.

        Args:
            event: The WORKFLOW event (payload: name).
        """
        name = event.payload.get("name", "")
        logger.info("Handling WORKFLOW event: %s", name)

        try:
            run = await self._run_workflow_use_case.execute(name)
        except Exception:
            logger.exception("Error running workflow %s", name)
            return

        if run is not None:
            logger.info("Workflow %s summary:\n%s", name, run.summary)
