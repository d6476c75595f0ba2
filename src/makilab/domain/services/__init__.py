"""Domain services."""

from makilab.domain.services.capability_registry import CapabilityRegistry
from makilab.domain.services.prompt_builder import build_system_prompt
from makilab.domain.services.protocols import (
    BridgeCallResult,
    BridgeServer,
    BridgeTool,
    ChatModel,
    ConversationSummarizer,
    Embedder,
    ExternalBridge,
    FactExtractor,
    SemanticMemory,
    VectorHit,
    VectorIndex,
)

__all__ = [
    "BridgeCallResult",
    "BridgeServer",
    "BridgeTool",
    "CapabilityRegistry",
    "ChatModel",
    "ConversationSummarizer",
    "Embedder",
    "ExternalBridge",
    "FactExtractor",
    "SemanticMemory",
    "VectorHit",
    "VectorIndex",
    "build_system_prompt",
]
