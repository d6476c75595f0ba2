"""SQLite implementation of WorkflowRunRepository."""

import json
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from typing import Any

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from makilab.domain.entities.plan import PlanStep, StepOutcome, StepStatus
from makilab.domain.entities.tool_result import ToolResult
from makilab.domain.entities.workflow import WorkflowRun, WorkflowStatus
from makilab.infrastructure.persistence.datetime_utils import normalize_to_utc
from makilab.infrastructure.persistence.models import WorkflowRunModel


class SQLiteWorkflowRunRepository:
    """SQLite-backed workflow run history.

    Step outcomes are serialized as a JSON list in the ``steps`` column.
    """

    def __init__(
        self,
        session_factory: Callable[[], AbstractAsyncContextManager[AsyncSession]],
    ) -> None:
        self._session_factory = session_factory

    async def save(self, run: WorkflowRun) -> None:
        """Store a finished run."""
        async with self._session_factory() as session:
            session.add(self._to_model(run))
            await session.commit()

    async def find_recent(self, name: str, limit: int = 10) -> list[WorkflowRun]:
        """Get the latest runs of a workflow, newest first.

        Args:
            name: Workflow name.
            limit: Maximum number of runs.

        Returns:
            Workflow runs.
        """
        async with self._session_factory() as session:
            stmt = (
                select(WorkflowRunModel)
                .where(WorkflowRunModel.name == name)
                .order_by(WorkflowRunModel.id.desc())  # type: ignore[union-attr]
                .limit(limit)
            )
            result = await session.exec(stmt)
            return [self._to_entity(model) for model in result.all()]

    def _to_model(self, run: WorkflowRun) -> WorkflowRunModel:
        steps = [
            {
                "subagent": o.step.subagent,
                "action": o.step.action,
                "input": o.step.input,
                "parallel": o.step.parallel,
                "requires_confirmation": o.step.requires_confirmation,
                "status": o.status.value,
                "success": o.result.success,
                "text": o.result.text,
                "error": o.result.error,
            }
            for o in run.outcomes
        ]
        return WorkflowRunModel(
            name=run.name,
            status=run.status.value,
            summary=run.summary,
            steps=json.dumps(steps, ensure_ascii=False, default=str),
            started_at=run.started_at,
            finished_at=run.finished_at,
        )

    def _to_entity(self, model: WorkflowRunModel) -> WorkflowRun:
        raw_steps: list[dict[str, Any]] = json.loads(model.steps)
        outcomes = [
            StepOutcome(
                step=PlanStep(
                    subagent=item["subagent"],
                    action=item["action"],
                    input=item.get("input") or {},
                    parallel=item.get("parallel", False),
                    requires_confirmation=item.get("requires_confirmation", False),
                ),
                status=StepStatus(item["status"]),
                result=ToolResult(
                    success=item["success"],
                    text=item["text"],
                    error=item.get("error"),
                ),
            )
            for item in raw_steps
        ]
        return WorkflowRun(
            name=model.name,
            status=WorkflowStatus(model.status),
            outcomes=outcomes,
            summary=model.summary,
            started_at=normalize_to_utc(model.started_at),
            finished_at=normalize_to_utc(model.finished_at),
        )
