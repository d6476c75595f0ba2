"""Events emitted by the streaming turn loop."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class TextDeltaEvent:
    """A text increment from the model."""

    content: str
    type: str = field(default="text_delta", init=False)


@dataclass(frozen=True)
class ToolStartEvent:
    """A tool call is about to run."""

    name: str
    args: dict[str, Any] = field(default_factory=dict)
    type: str = field(default="tool_start", init=False)


@dataclass(frozen=True)
class ToolEndEvent:
    """A tool call finished. The result text is truncated."""

    name: str
    success: bool
    result: str
    type: str = field(default="tool_end", init=False)


@dataclass(frozen=True)
class DoneEvent:
    """Terminal event carrying the final answer."""

    full_text: str
    type: str = field(default="done", init=False)


@dataclass(frozen=True)
class ErrorEvent:
    """Terminal event aborting the stream."""

    message: str
    type: str = field(default="error", init=False)


StreamEvent = TextDeltaEvent | ToolStartEvent | ToolEndEvent | DoneEvent | ErrorEvent
