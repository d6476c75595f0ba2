"""Application use cases."""

from makilab.application.use_cases.run_plan import PlanExecutor, group_steps
from makilab.application.use_cases.run_turn import TurnLoop
from makilab.application.use_cases.run_workflow import (
    RunWorkflowUseCase,
    workflow_from_config,
)

__all__ = [
    "PlanExecutor",
    "RunWorkflowUseCase",
    "TurnLoop",
    "group_steps",
    "workflow_from_config",
]
