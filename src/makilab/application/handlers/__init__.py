"""Background event handlers."""

from makilab.application.handlers.memory_handlers import (
    CompactionHandler,
    FactExtractionHandler,
    SemanticIndexHandler,
)
from makilab.application.handlers.workflow_handler import WorkflowEventHandler

__all__ = [
    "CompactionHandler",
    "FactExtractionHandler",
    "SemanticIndexHandler",
    "WorkflowEventHandler",
]
