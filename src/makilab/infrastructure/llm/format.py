"""Conversion between domain LLM entities and the OpenAI wire format.

LiteLLM speaks the OpenAI chat-completions format for every provider, so
the transcript is rendered once here and responses are parsed back into
content blocks.
"""

import json
import logging
from collections.abc import Sequence
from typing import Any

from makilab.domain.entities.llm import (
    AssistantTurn,
    ContentBlock,
    LLMResponse,
    StopReason,
    TextBlock,
    ToolResultsTurn,
    ToolSpec,
    ToolUseBlock,
    TranscriptItem,
    Usage,
)
from makilab.domain.entities.message import Message

logger = logging.getLogger(__name__)

_STOP_REASONS = {
    "stop": StopReason.END_TURN,
    "end_turn": StopReason.END_TURN,
    "tool_calls": StopReason.TOOL_USE,
    "function_call": StopReason.TOOL_USE,
    "tool_use": StopReason.TOOL_USE,
}


def to_openai_messages(
    system_prompt: str, transcript: Sequence[TranscriptItem]
) -> list[dict[str, Any]]:
    """Render a transcript as OpenAI chat messages.

    A tool results turn expands to one ``tool`` message per call id.

    Args:
        system_prompt: System prompt, sent first.
        transcript: Running transcript.

    Returns:
        OpenAI-format message list.
    """
    messages: list[dict[str, Any]] = [{"role": "system", "content": system_prompt}]
    for item in transcript:
        if isinstance(item, Message):
            messages.append({"role": item.role.value, "content": item.content})
        elif isinstance(item, AssistantTurn):
            messages.append(_assistant_message(item))
        elif isinstance(item, ToolResultsTurn):
            for entry in item.results:
                messages.append(
                    {
                        "role": "tool",
                        "tool_call_id": entry.call_id,
                        "name": entry.name,
                        "content": entry.result.to_model_content(),
                    }
                )
    return messages


def _assistant_message(turn: AssistantTurn) -> dict[str, Any]:
    text = "".join(b.text for b in turn.content if isinstance(b, TextBlock))
    message: dict[str, Any] = {"role": "assistant", "content": text or None}
    tool_calls = [
        {
            "id": block.call_id,
            "type": "function",
            "function": {
                "name": block.name,
                "arguments": json.dumps(block.input, ensure_ascii=False),
            },
        }
        for block in turn.content
        if isinstance(block, ToolUseBlock)
    ]
    if tool_calls:
        message["tool_calls"] = tool_calls
    return message


def to_openai_tools(tools: Sequence[ToolSpec]) -> list[dict[str, Any]]:
    """Render tool specs as OpenAI function tools."""
    return [
        {
            "type": "function",
            "function": {
                "name": tool.name,
                "description": tool.description,
                "parameters": tool.input_schema,
            },
        }
        for tool in tools
    ]


def _parse_arguments(raw: Any) -> dict[str, Any]:
    if isinstance(raw, dict):
        return raw
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("Unparseable tool arguments: %r", raw)
        return {}
    return parsed if isinstance(parsed, dict) else {}


def parse_response(response: Any) -> LLMResponse:
    """Parse a LiteLLM ModelResponse into an LLMResponse.

    Args:
        response: LiteLLM (OpenAI-shaped) completion response.

    Returns:
        Content blocks (text first, then tool calls), stop reason and usage.
    """
    choice = response.choices[0]
    message = choice.message

    content: list[ContentBlock] = []
    if message.content:
        content.append(TextBlock(text=message.content))
    for call in getattr(message, "tool_calls", None) or []:
        content.append(
            ToolUseBlock(
                call_id=call.id,
                name=call.function.name,
                input=_parse_arguments(call.function.arguments),
            )
        )

    stop_reason = _STOP_REASONS.get(choice.finish_reason or "", StopReason.OTHER)
    # Some providers report "stop" even when tool calls are present
    if stop_reason == StopReason.END_TURN and any(
        isinstance(b, ToolUseBlock) for b in content
    ):
        stop_reason = StopReason.TOOL_USE

    usage = getattr(response, "usage", None)
    return LLMResponse(
        content=content,
        stop_reason=stop_reason,
        usage=Usage(
            input_tokens=getattr(usage, "prompt_tokens", 0) or 0,
            output_tokens=getattr(usage, "completion_tokens", 0) or 0,
        ),
    )
