"""Scheduled workflow entities."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from makilab.domain.entities.plan import PlanStep, StepOutcome


@dataclass(frozen=True)
class Workflow:
    """A named, fixed list of plan steps."""

    name: str
    steps: list[PlanStep] = field(default_factory=list)


class WorkflowStatus(Enum):
    """Final status of a workflow run."""

    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class WorkflowRun:
    """Record of one workflow execution.

    Attributes:
        name: Workflow name.
        status: Final status.
        outcomes: Outcomes of the steps that were reached, in order.
        summary: Aggregated step text.
        started_at: Start time.
        finished_at: End time.
    """

    name: str
    status: WorkflowStatus
    outcomes: list[StepOutcome]
    summary: str
    started_at: datetime
    finished_at: datetime
