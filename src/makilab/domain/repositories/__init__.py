"""Domain repositories."""

from makilab.domain.repositories.fact_repository import FactRepository
from makilab.domain.repositories.message_repository import MessageRepository
from makilab.domain.repositories.summary_repository import SummaryRepository
from makilab.domain.repositories.workflow_run_repository import WorkflowRunRepository

__all__ = [
    "FactRepository",
    "MessageRepository",
    "SummaryRepository",
    "WorkflowRunRepository",
]
