"""Domain entities."""

from makilab.domain.entities.capability import ActionSpec, Capability, LegacyTool
from makilab.domain.entities.event import Event, EventType
from makilab.domain.entities.llm import (
    AssistantTurn,
    ContentBlock,
    LLMResponse,
    StopReason,
    TextBlock,
    ToolResultEntry,
    ToolResultsTurn,
    ToolSpec,
    ToolUseBlock,
    TranscriptItem,
    Usage,
)
from makilab.domain.entities.memory_context import ChannelMemoryContext
from makilab.domain.entities.message import Message, Role
from makilab.domain.entities.plan import PlanResult, PlanStep, StepOutcome, StepStatus
from makilab.domain.entities.qualified_name import QualifiedName, ToolKind
from makilab.domain.entities.stream_event import (
    DoneEvent,
    ErrorEvent,
    StreamEvent,
    TextDeltaEvent,
    ToolEndEvent,
    ToolStartEvent,
)
from makilab.domain.entities.tool_result import ToolResult
from makilab.domain.entities.workflow import Workflow, WorkflowRun, WorkflowStatus

__all__ = [
    "ActionSpec",
    "AssistantTurn",
    "Capability",
    "ChannelMemoryContext",
    "ContentBlock",
    "DoneEvent",
    "ErrorEvent",
    "Event",
    "EventType",
    "LLMResponse",
    "LegacyTool",
    "Message",
    "PlanResult",
    "PlanStep",
    "QualifiedName",
    "Role",
    "StepOutcome",
    "StepStatus",
    "StopReason",
    "StreamEvent",
    "TextBlock",
    "TextDeltaEvent",
    "ToolEndEvent",
    "ToolKind",
    "ToolResult",
    "ToolResultEntry",
    "ToolResultsTurn",
    "ToolSpec",
    "ToolStartEvent",
    "ToolUseBlock",
    "TranscriptItem",
    "Usage",
    "Workflow",
    "WorkflowRun",
    "WorkflowStatus",
]
