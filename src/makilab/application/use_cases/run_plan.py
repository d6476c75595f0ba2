"""Plan executor for fixed capability call lists."""

import asyncio
import logging
from collections.abc import AsyncIterator, Sequence

from makilab.application.services.dispatch import DispatchResolver
from makilab.config.models import AgentConfig
from makilab.domain.entities.plan import PlanResult, PlanStep, StepOutcome, StepStatus
from makilab.domain.entities.tool_result import ToolResult

logger = logging.getLogger(__name__)

_MARKERS = {
    StepStatus.DONE: "✅",
    StepStatus.FAILED: "❌",
    StepStatus.SKIPPED: "⏭️",
}

SKIPPED_TEXT = "Étape ignorée : confirmation requise"


def group_steps(steps: Sequence[PlanStep]) -> list[list[PlanStep]]:
    """Split a plan into execution groups.

    A non-parallel step forms its own group. Consecutive parallel steps
    form one group.

    Args:
        steps: Plan steps in order.

    Returns:
        Groups in order; concatenating them gives back the plan.
    """
    groups: list[list[PlanStep]] = []
    for step in steps:
        if step.parallel and groups and groups[-1][-1].parallel:
            groups[-1].append(step)
        else:
            groups.append([step])
    return groups


class PlanExecutor:
    """Runs plan steps through the dispatch resolver.

    Groups run one after another; the steps of a parallel group run
    concurrently and the next group starts only when all of them are done.
    Outcomes always come back in plan order. Failures do not stop the plan.
    """

    def __init__(self, dispatcher: DispatchResolver, config: AgentConfig) -> None:
        """Initialize.

        Args:
            dispatcher: Dispatch resolver (capability path).
            config: Agent settings (per-step summary truncation).
        """
        self._dispatcher = dispatcher
        self._config = config

    async def iter_groups(
        self, steps: Sequence[PlanStep]
    ) -> AsyncIterator[list[StepOutcome]]:
        """Run the plan group by group.

        Yields:
            The outcomes of each group, in step order, once the whole
            group has completed.
        """
        for group in group_steps(steps):
            if len(group) == 1:
                yield [await self._run_step(group[0])]
            else:
                logger.info(
                    "Running %d steps in parallel: %s",
                    len(group),
                    ", ".join(step.label for step in group),
                )
                outcomes = await asyncio.gather(*(self._run_step(s) for s in group))
                yield list(outcomes)

    async def run(self, steps: Sequence[PlanStep]) -> PlanResult:
        """Run every step.

        Args:
            steps: Plan steps in order.

        Returns:
            Outcomes in plan order and their aggregated text.
        """
        outcomes: list[StepOutcome] = []
        async for group_outcomes in self.iter_groups(steps):
            outcomes.extend(group_outcomes)
        return PlanResult(outcomes=outcomes, summary=self.summarize(outcomes))

    def summarize(self, outcomes: Sequence[StepOutcome]) -> str:
        """One ``<marker> [subagent/action]: text`` line per step."""
        limit = self._config.plan_step_text_chars
        return "\n".join(
            f"{_MARKERS[o.status]} [{o.step.label}]: {o.result.text[:limit]}"
            for o in outcomes
        )

    async def _run_step(self, step: PlanStep) -> StepOutcome:
        if step.requires_confirmation:
            logger.info("Skipping step %s: confirmation required", step.label)
            return StepOutcome(
                step=step,
                status=StepStatus.SKIPPED,
                result=ToolResult(success=False, text=SKIPPED_TEXT),
            )

        logger.info("Plan step [%s]", step.label)
        result = await self._dispatcher.resolve_capability(
            step.subagent, step.action, dict(step.input)
        )
        status = StepStatus.DONE if result.success else StepStatus.FAILED
        return StepOutcome(step=step, status=status, result=result)
