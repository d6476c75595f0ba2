"""LLM exchange entities.

These types describe one tool-calling exchange with a chat model
independently of the provider wire format.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from makilab.domain.entities.message import Message
from makilab.domain.entities.tool_result import ToolResult


class StopReason(Enum):
    """Why the model stopped generating."""

    END_TURN = "end_turn"
    TOOL_USE = "tool_use"
    OTHER = "other"


@dataclass(frozen=True)
class TextBlock:
    """Text emitted by the model."""

    text: str


@dataclass(frozen=True)
class ToolUseBlock:
    """Tool call emitted by the model.

    Attributes:
        call_id: Provider call id, used to match the result.
        name: Qualified tool name.
        input: Decoded JSON arguments.
    """

    call_id: str
    name: str
    input: dict[str, Any] = field(default_factory=dict)


ContentBlock = TextBlock | ToolUseBlock


@dataclass(frozen=True)
class Usage:
    """Token usage of one model call."""

    input_tokens: int = 0
    output_tokens: int = 0


@dataclass(frozen=True)
class LLMResponse:
    """Result of one model call.

    Attributes:
        content: Content blocks in emission order.
        stop_reason: Why generation ended.
        usage: Token usage.
    """

    content: list[ContentBlock]
    stop_reason: StopReason
    usage: Usage = field(default_factory=Usage)

    @property
    def text(self) -> str:
        """Concatenated text of every text block."""
        return "".join(block.text for block in self.content if isinstance(block, TextBlock))

    @property
    def tool_uses(self) -> list[ToolUseBlock]:
        return [block for block in self.content if isinstance(block, ToolUseBlock)]


@dataclass(frozen=True)
class ToolSpec:
    """Tool declaration handed to the model."""

    name: str
    description: str
    input_schema: dict[str, Any]


@dataclass(frozen=True)
class AssistantTurn:
    """The model's own tool-call message, replayed on the next call."""

    content: list[ContentBlock]


@dataclass(frozen=True)
class ToolResultEntry:
    """Result of one tool call, keyed by the call id."""

    call_id: str
    name: str
    result: ToolResult


@dataclass(frozen=True)
class ToolResultsTurn:
    """Synthetic message carrying every result of one tool-use response."""

    results: list[ToolResultEntry]


TranscriptItem = Message | AssistantTurn | ToolResultsTurn
