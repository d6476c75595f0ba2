"""Turn loop: one user message to one final answer."""

import logging
from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass, field

from makilab.application.services.dispatch import DispatchResolver
from makilab.application.services.memory_lifecycle import MemoryLifecycleManager
from makilab.config.models import AgentConfig
from makilab.domain.entities.llm import (
    AssistantTurn,
    LLMResponse,
    StopReason,
    ToolResultEntry,
    ToolResultsTurn,
    ToolSpec,
    ToolUseBlock,
    TranscriptItem,
)
from makilab.domain.entities.message import Message
from makilab.domain.entities.stream_event import (
    DoneEvent,
    ErrorEvent,
    StreamEvent,
    TextDeltaEvent,
    ToolEndEvent,
    ToolStartEvent,
)
from makilab.domain.services.prompt_builder import build_system_prompt
from makilab.domain.services.protocols import ChatModel
from makilab.infrastructure.llm.exceptions import LLMError

logger = logging.getLogger(__name__)


@dataclass
class _TurnState:
    """Mutable state of one turn."""

    system_prompt: str
    transcript: list[TranscriptItem]
    tools: list[ToolSpec]
    tool_outputs: list[str] = field(default_factory=list)
    final_text: str = ""


class TurnLoop:
    """Iteration-bounded tool-use loop.

    Each iteration calls the model once. A tool-use response has every
    tool call dispatched in order and answered in a single tool results
    turn before the next call. The loop ends on an end-of-turn response,
    on any other stop reason, or when the iteration bound is reached; the
    last two produce the iteration-limit message instead of an answer.
    """

    def __init__(
        self,
        chat_model: ChatModel,
        dispatcher: DispatchResolver,
        memory: MemoryLifecycleManager,
        base_prompt: str,
        config: AgentConfig,
    ) -> None:
        """Initialize.

        Args:
            chat_model: Tool-calling model (the only collaborator allowed to
                abort a turn).
            dispatcher: Dispatch resolver for tool calls.
            memory: Memory lifecycle manager.
            base_prompt: Persona/policy block placed first in the system prompt.
            config: Turn loop settings.
        """
        self._chat_model = chat_model
        self._dispatcher = dispatcher
        self._memory = memory
        self._base_prompt = base_prompt
        self._config = config

    async def run(
        self,
        user_message: str,
        channel: str = "cli",
        history: Sequence[Message] | None = None,
        max_iterations: int | None = None,
    ) -> str:
        """Run one turn.

        Args:
            user_message: The user's message.
            channel: Channel identifier.
            history: Fallback history, used only when the store holds no
                message for the channel.
            max_iterations: Maximum number of model calls (defaults to
                the configured bound).

        Returns:
            The final answer (never empty).

        Raises:
            LLMError: A model call failed.
        """
        limit = self._limit(max_iterations)
        state = await self._prepare(user_message, channel, history)

        for iteration in range(1, limit + 1):
            response = await self._chat_model.chat(
                state.system_prompt, list(state.transcript), state.tools
            )
            self._log_response(channel, iteration, response)
            if not self._advance(state, response):
                break
            entries = [
                await self._call_tool(state, block) for block in response.tool_uses
            ]
            state.transcript.append(ToolResultsTurn(results=entries))

        return await self._finish(state, user_message, channel, limit)

    async def stream(
        self,
        user_message: str,
        channel: str = "cli",
        history: Sequence[Message] | None = None,
        max_iterations: int | None = None,
    ) -> AsyncIterator[StreamEvent]:
        """Run one turn, yielding events as it progresses.

        Emits text deltas, tool start/end pairs, then a single ``done``
        event with the final answer. A model failure, or a memory store
        failure while loading the context, yields one ``error`` event and
        ends the stream without persisting anything.
        """
        limit = self._limit(max_iterations)
        try:
            state = await self._prepare(user_message, channel, history)
        except Exception as e:
            logger.exception("Failed to load memory context [%s]", channel)
            yield ErrorEvent(message=f"Mémoire indisponible : {e}")
            return

        try:
            for iteration in range(1, limit + 1):
                response: LLMResponse | None = None
                async for item in self._chat_model.stream_chat(
                    state.system_prompt, list(state.transcript), state.tools
                ):
                    if isinstance(item, str):
                        yield TextDeltaEvent(content=item)
                    else:
                        response = item
                if response is None:
                    raise LLMError("Stream ended without a response")

                self._log_response(channel, iteration, response)
                if not self._advance(state, response):
                    break
                entries = []
                for block in response.tool_uses:
                    yield ToolStartEvent(name=block.name, args=dict(block.input))
                    entry = await self._call_tool(state, block)
                    entries.append(entry)
                    yield ToolEndEvent(
                        name=block.name,
                        success=entry.result.success,
                        result=entry.result.to_model_content()[
                            : self._config.tool_result_preview_chars
                        ],
                    )
                state.transcript.append(ToolResultsTurn(results=entries))
        except LLMError as e:
            logger.error("Turn aborted [%s]: %s", channel, e)
            yield ErrorEvent(message=str(e))
            return

        final_text = await self._finish(state, user_message, channel, limit)
        yield DoneEvent(full_text=final_text)

    def _limit(self, max_iterations: int | None) -> int:
        return self._config.max_iterations if max_iterations is None else max_iterations

    async def _prepare(
        self,
        user_message: str,
        channel: str,
        history: Sequence[Message] | None,
    ) -> _TurnState:
        memory = await self._memory.load_context(channel)
        system_prompt = build_system_prompt(
            self._base_prompt, memory, self._dispatcher.registry
        )
        past: Sequence[Message] = memory.recent_messages or history or []
        transcript: list[TranscriptItem] = [
            Message(role=m.role, content=m.content) for m in past
        ]
        transcript.append(Message.user(user_message))
        return _TurnState(
            system_prompt=system_prompt,
            transcript=transcript,
            tools=self._dispatcher.tool_specs(),
        )

    def _advance(self, state: _TurnState, response: LLMResponse) -> bool:
        """Apply a model response.

        Returns:
            True when the response requests tools and the loop continues.
        """
        if response.stop_reason == StopReason.END_TURN:
            state.final_text = response.text
            return False
        if response.stop_reason == StopReason.TOOL_USE and response.tool_uses:
            state.transcript.append(AssistantTurn(content=list(response.content)))
            return True
        logger.warning("Unexpected stop reason: %s", response.stop_reason.value)
        return False

    async def _call_tool(self, state: _TurnState, block: ToolUseBlock) -> ToolResultEntry:
        result = await self._dispatcher.resolve(block.name, block.input)
        state.tool_outputs.append(result.to_model_content())
        return ToolResultEntry(call_id=block.call_id, name=block.name, result=result)

    async def _finish(
        self, state: _TurnState, user_message: str, channel: str, limit: int
    ) -> str:
        final_text = state.final_text
        if not final_text.strip():
            final_text = self._config.format_iteration_limit(limit)
            logger.info("Turn [%s] ended without an answer (limit=%d)", channel, limit)

        try:
            await self._memory.record_exchange(channel, user_message, final_text)
        except Exception:
            logger.exception("Failed to persist exchange [%s]", channel)
        else:
            await self._memory.schedule_enrichment(
                channel, user_message, final_text, state.tool_outputs
            )
        return final_text

    def _log_response(self, channel: str, iteration: int, response: LLMResponse) -> None:
        logger.debug(
            "Turn [%s] iteration %d: stop=%s tools=%d tokens=%d/%d",
            channel,
            iteration,
            response.stop_reason.value,
            len(response.tool_uses),
            response.usage.input_tokens,
            response.usage.output_tokens,
        )
