"""Persistence layer (SQLite via SQLModel)."""

from makilab.infrastructure.persistence.database import DatabaseManager
from makilab.infrastructure.persistence.exceptions import (
    DatabaseError,
    PersistenceError,
)
from makilab.infrastructure.persistence.fact_repository import SQLiteFactRepository
from makilab.infrastructure.persistence.message_repository import (
    SQLiteMessageRepository,
)
from makilab.infrastructure.persistence.models import (
    FactModel,
    MessageModel,
    SemanticEntryModel,
    SummaryModel,
    WorkflowRunModel,
)
from makilab.infrastructure.persistence.summary_repository import (
    SQLiteSummaryRepository,
)
from makilab.infrastructure.persistence.vector_index import SQLiteVectorIndex
from makilab.infrastructure.persistence.workflow_run_repository import (
    SQLiteWorkflowRunRepository,
)

__all__ = [
    "DatabaseError",
    "DatabaseManager",
    "FactModel",
    "MessageModel",
    "PersistenceError",
    "SQLiteFactRepository",
    "SQLiteMessageRepository",
    "SQLiteSummaryRepository",
    "SQLiteVectorIndex",
    "SQLiteWorkflowRunRepository",
    "SemanticEntryModel",
    "SummaryModel",
    "WorkflowRunModel",
]
