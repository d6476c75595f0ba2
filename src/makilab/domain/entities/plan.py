"""Plan entities for scheduled workflows."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from makilab.domain.entities.tool_result import ToolResult


@dataclass(frozen=True)
class PlanStep:
    """A capability call in a plan.

    Attributes:
        subagent: Capability name.
        action: Action name.
        input: Action input.
        parallel: Whether the step may run concurrently with adjacent
            parallel steps.
        requires_confirmation: Steps needing human confirmation are skipped.
    """

    subagent: str
    action: str
    input: dict[str, Any] = field(default_factory=dict)
    parallel: bool = False
    requires_confirmation: bool = False

    @property
    def label(self) -> str:
        return f"{self.subagent}/{self.action}"


class StepStatus(Enum):
    """Outcome of a plan step."""

    DONE = "done"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class StepOutcome:
    """A step together with its result."""

    step: PlanStep
    status: StepStatus
    result: ToolResult

    @property
    def failed(self) -> bool:
        return self.status == StepStatus.FAILED


@dataclass(frozen=True)
class PlanResult:
    """Per-step outcomes (in input order) and their aggregated text."""

    outcomes: list[StepOutcome]
    summary: str

    @property
    def failed(self) -> bool:
        return any(outcome.failed for outcome in self.outcomes)
