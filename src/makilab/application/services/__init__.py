"""Application services."""

from makilab.application.services.dispatch import DispatchResolver
from makilab.application.services.memory_lifecycle import (
    MemoryLifecycleManager,
    excerpt_tool_outputs,
)
from makilab.application.services.semantic_indexer import SemanticIndexer

__all__ = [
    "DispatchResolver",
    "MemoryLifecycleManager",
    "SemanticIndexer",
    "excerpt_tool_outputs",
]
