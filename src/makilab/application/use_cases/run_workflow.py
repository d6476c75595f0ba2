"""Scheduled workflow runner."""

import logging
from collections.abc import Sequence
from datetime import datetime, timezone

from makilab.application.use_cases.run_plan import PlanExecutor
from makilab.config.models import WorkflowConfig
from makilab.domain.entities.plan import PlanStep, StepOutcome
from makilab.domain.entities.workflow import Workflow, WorkflowRun, WorkflowStatus
from makilab.domain.repositories import WorkflowRunRepository

logger = logging.getLogger(__name__)


def workflow_from_config(config: WorkflowConfig) -> Workflow:
    """Build a Workflow from its configuration."""
    return Workflow(
        name=config.name,
        steps=[
            PlanStep(
                subagent=step.subagent,
                action=step.action,
                input=dict(step.input),
                parallel=step.parallel,
                requires_confirmation=step.requires_confirmation,
            )
            for step in config.steps
        ],
    )


class RunWorkflowUseCase:
    """Runs a scheduled workflow and records the run.

    Unlike a bare plan, a workflow stops after the first group that
    contains a failed step and the run is then marked failed.
    """

    def __init__(
        self,
        executor: PlanExecutor,
        workflows: Sequence[Workflow],
        run_repository: WorkflowRunRepository | None = None,
    ) -> None:
        """Initialize.

        Args:
            executor: Plan executor.
            workflows: Known workflows.
            run_repository: Where runs are recorded, if anywhere.
        """
        self._executor = executor
        self._workflows = {workflow.name: workflow for workflow in workflows}
        self._run_repository = run_repository

    async def execute(self, name: str) -> WorkflowRun | None:
        """Run a workflow by name.

        Args:
            name: Workflow name.

        Returns:
            The run, or None if the workflow is unknown.
        """
        workflow = self._workflows.get(name)
        if workflow is None:
            logger.warning("Unknown workflow: %s", name)
            return None

        started_at = datetime.now(timezone.utc)
        outcomes: list[StepOutcome] = []
        status = WorkflowStatus.DONE
        async for group_outcomes in self._executor.iter_groups(workflow.steps):
            outcomes.extend(group_outcomes)
            if any(outcome.failed for outcome in group_outcomes):
                status = WorkflowStatus.FAILED
                break

        run = WorkflowRun(
            name=workflow.name,
            status=status,
            outcomes=outcomes,
            summary=self._executor.summarize(outcomes),
            started_at=started_at,
            finished_at=datetime.now(timezone.utc),
        )
        logger.info(
            "Workflow %s %s (%d/%d steps)",
            name,
            status.value,
            len(outcomes),
            len(workflow.steps),
        )

        if self._run_repository is not None:
            await self._run_repository.save(run)
        return run
