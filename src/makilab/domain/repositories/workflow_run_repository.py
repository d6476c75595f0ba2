"""Workflow run repository protocol."""

from typing import Protocol

from makilab.domain.entities.workflow import WorkflowRun


class WorkflowRunRepository(Protocol):
    """History of scheduled workflow runs."""

    async def save(self, run: WorkflowRun) -> None: ...

    async def find_recent(self, name: str, limit: int = 10) -> list[WorkflowRun]:
        """Get the latest runs of a workflow, newest first."""
        ...
