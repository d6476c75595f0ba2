"""Tests for TurnLoop."""

from collections.abc import AsyncIterator, Sequence
from typing import Any
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from makilab.application.services import DispatchResolver, MemoryLifecycleManager
from makilab.application.use_cases import TurnLoop
from makilab.config.models import AgentConfig, LLMConfig, MemoryConfig
from makilab.domain.entities.capability import ActionSpec
from makilab.domain.entities.llm import (
    AssistantTurn,
    LLMResponse,
    StopReason,
    TextBlock,
    ToolResultsTurn,
    ToolSpec,
    ToolUseBlock,
    TranscriptItem,
)
from makilab.domain.entities.message import Message, Role
from makilab.domain.entities.stream_event import (
    DoneEvent,
    ErrorEvent,
    TextDeltaEvent,
    ToolEndEvent,
    ToolStartEvent,
)
from makilab.domain.entities.tool_result import ToolResult
from makilab.domain.services.capability_registry import CapabilityRegistry
from makilab.infrastructure.capabilities import TimeCapability
from makilab.infrastructure.llm import LLMClient, LLMError
from makilab.infrastructure.persistence import (
    SQLiteFactRepository,
    SQLiteMessageRepository,
    SQLiteSummaryRepository,
)


def end_turn(text: str) -> LLMResponse:
    return LLMResponse(content=[TextBlock(text=text)], stop_reason=StopReason.END_TURN)


def tool_use(*calls: tuple[str, str, dict[str, Any]], text: str = "") -> LLMResponse:
    content: list = [TextBlock(text=text)] if text else []
    content.extend(ToolUseBlock(call_id=c, name=n, input=i) for c, n, i in calls)
    return LLMResponse(content=content, stop_reason=StopReason.TOOL_USE)


class ScriptedChatModel:
    """Chat model replaying scripted responses.

    The last response is repeated once the script is exhausted. An
    exception in the script is raised instead of returned.
    """

    def __init__(self, *responses: LLMResponse | Exception) -> None:
        self._responses = list(responses)
        self.calls: list[tuple[str, list[TranscriptItem], list[ToolSpec]]] = []

    def _next(self) -> LLMResponse:
        item = self._responses.pop(0) if len(self._responses) > 1 else self._responses[0]
        if isinstance(item, Exception):
            raise item
        return item

    async def chat(
        self,
        system_prompt: str,
        messages: Sequence[TranscriptItem],
        tools: Sequence[ToolSpec],
        max_tokens: int | None = None,
    ) -> LLMResponse:
        self.calls.append((system_prompt, list(messages), list(tools)))
        return self._next()

    async def stream_chat(
        self,
        system_prompt: str,
        messages: Sequence[TranscriptItem],
        tools: Sequence[ToolSpec],
        max_tokens: int | None = None,
    ) -> AsyncIterator[str | LLMResponse]:
        self.calls.append((system_prompt, list(messages), list(tools)))
        response = self._next()
        for word in response.text.split(" "):
            if word:
                yield word + " "
        yield response


class SlowCounterCapability:
    """Counts calls; used to check sequential tool execution."""

    name = "counter"
    description = "Compte"
    actions = (ActionSpec(name="inc", description="Incrémente"),)

    def __init__(self) -> None:
        self.order: list[str] = []

    async def execute(self, action: str, input: dict[str, Any]) -> ToolResult:
        self.order.append(input.get("id", ""))
        return ToolResult.ok(f"compteur {input.get('id', '')}")


@pytest.fixture
def messages(session_factory) -> SQLiteMessageRepository:
    return SQLiteMessageRepository(session_factory)


@pytest.fixture
def memory(session_factory, messages: SQLiteMessageRepository) -> MemoryLifecycleManager:
    """Create a memory manager over an in-memory store."""
    return MemoryLifecycleManager(
        message_repository=messages,
        summary_repository=SQLiteSummaryRepository(session_factory),
        fact_repository=SQLiteFactRepository(session_factory),
        config=MemoryConfig(database_path=":memory:"),
    )


@pytest.fixture
def counter() -> SlowCounterCapability:
    return SlowCounterCapability()


@pytest.fixture
def dispatcher(counter: SlowCounterCapability) -> DispatchResolver:
    return DispatchResolver(CapabilityRegistry([TimeCapability(), counter]))


def make_loop(
    model: ScriptedChatModel,
    dispatcher: DispatchResolver,
    memory: MemoryLifecycleManager,
    max_iterations: int = 10,
) -> TurnLoop:
    return TurnLoop(
        chat_model=model,
        dispatcher=dispatcher,
        memory=memory,
        base_prompt="Tu es Makilab.",
        config=AgentConfig(max_iterations=max_iterations),
    )


class TestRun:
    """TurnLoop.run tests."""

    async def test_end_turn_makes_one_call(
        self,
        dispatcher: DispatchResolver,
        memory: MemoryLifecycleManager,
        messages: SQLiteMessageRepository,
    ) -> None:
        """Test that an immediate answer needs one model call."""
        model = ScriptedChatModel(end_turn("Bonjour !"))

        answer = await make_loop(model, dispatcher, memory).run("Salut")

        assert answer == "Bonjour !"
        assert len(model.calls) == 1
        stored = await messages.find_recent("cli")
        assert [(m.role, m.content) for m in stored] == [
            (Role.USER, "Salut"),
            (Role.ASSISTANT, "Bonjour !"),
        ]

    async def test_time_question(
        self,
        dispatcher: DispatchResolver,
        memory: MemoryLifecycleManager,
    ) -> None:
        """Test a tool round followed by an answer."""
        model = ScriptedChatModel(
            tool_use(("c1", "time__get", {})),
            end_turn("Il est midi à Paris."),
        )

        answer = await make_loop(model, dispatcher, memory).run("Quelle heure est-il ?")

        assert answer == "Il est midi à Paris."
        assert len(model.calls) == 2
        system_prompt, transcript, tools = model.calls[1]
        assert "### time" in system_prompt
        assert "time__get" in [tool.name for tool in tools]
        assert isinstance(transcript[-2], AssistantTurn)
        results_turn = transcript[-1]
        assert isinstance(results_turn, ToolResultsTurn)
        assert results_turn.results[0].call_id == "c1"
        assert results_turn.results[0].result.text.startswith("Heure actuelle")

    async def test_one_result_per_tool_call_in_order(
        self,
        dispatcher: DispatchResolver,
        memory: MemoryLifecycleManager,
        counter: SlowCounterCapability,
    ) -> None:
        """Test that every call id gets exactly one result, in call order."""
        model = ScriptedChatModel(
            tool_use(
                ("a", "counter__inc", {"id": "1"}),
                ("b", "counter__inc", {"id": "2"}),
                ("c", "weather__get", {}),
            ),
            end_turn("Fait."),
        )

        await make_loop(model, dispatcher, memory).run("Compte")

        results_turn = model.calls[1][1][-1]
        assert [entry.call_id for entry in results_turn.results] == ["a", "b", "c"]
        assert counter.order == ["1", "2"]
        assert not results_turn.results[2].result.success

    async def test_iteration_limit(
        self,
        dispatcher: DispatchResolver,
        memory: MemoryLifecycleManager,
        messages: SQLiteMessageRepository,
    ) -> None:
        """Test that a model that never stops is cut after max_iterations."""
        model = ScriptedChatModel(tool_use(("c", "time__get", {})))

        answer = await make_loop(model, dispatcher, memory).run(
            "Boucle", max_iterations=3
        )

        assert len(model.calls) == 3
        assert "3" in answer
        stored = await messages.find_recent("cli")
        assert stored[-1].content == answer

    async def test_unexpected_stop_reason(
        self,
        dispatcher: DispatchResolver,
        memory: MemoryLifecycleManager,
    ) -> None:
        """Test that a truncated response ends the turn with the fallback."""
        model = ScriptedChatModel(
            LLMResponse(content=[TextBlock(text="tronq")], stop_reason=StopReason.OTHER)
        )

        answer = await make_loop(model, dispatcher, memory, max_iterations=5).run("x")

        assert len(model.calls) == 1
        assert answer == AgentConfig().format_iteration_limit(5)

    async def test_llm_error_propagates_without_persisting(
        self,
        dispatcher: DispatchResolver,
        memory: MemoryLifecycleManager,
        messages: SQLiteMessageRepository,
    ) -> None:
        """Test that a model failure aborts the turn."""
        model = ScriptedChatModel(LLMError("provider down"))

        with pytest.raises(LLMError):
            await make_loop(model, dispatcher, memory).run("Salut")

        assert await messages.count("cli") == 0

    async def test_malformed_provider_response_raises_llm_error(
        self,
        dispatcher: DispatchResolver,
        memory: MemoryLifecycleManager,
        messages: SQLiteMessageRepository,
    ) -> None:
        """Test that a response without choices surfaces as LLMError."""
        client = LLMClient(LLMConfig(model="openai/gpt-4o-mini"))
        loop = TurnLoop(
            chat_model=client,
            dispatcher=dispatcher,
            memory=memory,
            base_prompt="Tu es Makilab.",
            config=AgentConfig(),
        )

        with patch(
            "litellm.acompletion",
            new=AsyncMock(return_value=SimpleNamespace(choices=[])),
        ):
            with pytest.raises(LLMError):
                await loop.run("Salut")

        assert await messages.count("cli") == 0

    async def test_stored_history_wins_over_fallback(
        self,
        dispatcher: DispatchResolver,
        memory: MemoryLifecycleManager,
        messages: SQLiteMessageRepository,
    ) -> None:
        """Test the history source."""
        model = ScriptedChatModel(end_turn("ok"))
        loop = make_loop(model, dispatcher, memory)
        fallback = [Message.user("ancien"), Message.assistant("historique")]

        await loop.run("premier", history=fallback)
        first_transcript = model.calls[0][1]
        await loop.run("second", history=fallback)
        second_transcript = model.calls[1][1]

        assert [m.content for m in first_transcript] == ["ancien", "historique", "premier"]
        assert [m.content for m in second_transcript] == ["premier", "ok", "second"]

    async def test_persistence_failure_still_answers(
        self,
        dispatcher: DispatchResolver,
        memory: MemoryLifecycleManager,
    ) -> None:
        """Test that a store failure after the answer is not fatal."""
        memory.record_exchange = AsyncMock(side_effect=RuntimeError("disk full"))
        memory.schedule_enrichment = AsyncMock()
        model = ScriptedChatModel(end_turn("Bonjour"))

        answer = await make_loop(model, dispatcher, memory).run("Salut")

        assert answer == "Bonjour"
        memory.schedule_enrichment.assert_not_awaited()

    async def test_enrichment_receives_tool_outputs(
        self,
        dispatcher: DispatchResolver,
        memory: MemoryLifecycleManager,
    ) -> None:
        """Test that tool outputs of the turn are handed to enrichment."""
        memory.schedule_enrichment = AsyncMock()
        model = ScriptedChatModel(
            tool_use(("a", "counter__inc", {"id": "7"})), end_turn("Fait.")
        )

        await make_loop(model, dispatcher, memory).run("Compte", channel="slack")

        memory.schedule_enrichment.assert_awaited_once_with(
            "slack", "Compte", "Fait.", ["compteur 7"]
        )


class TestStream:
    """TurnLoop.stream tests."""

    async def test_event_sequence(
        self,
        dispatcher: DispatchResolver,
        memory: MemoryLifecycleManager,
        messages: SQLiteMessageRepository,
    ) -> None:
        """Test deltas, tool start/end pairs and a final done event."""
        model = ScriptedChatModel(
            tool_use(("c1", "time__get", {}), text="Voyons"),
            end_turn("Il est midi."),
        )
        loop = make_loop(model, dispatcher, memory)

        events = [event async for event in loop.stream("Heure ?")]

        types = [event.type for event in events]
        assert types == [
            "text_delta",
            "tool_start",
            "tool_end",
            "text_delta",
            "text_delta",
            "text_delta",
            "done",
        ]
        start = events[1]
        end = events[2]
        assert isinstance(start, ToolStartEvent) and start.name == "time__get"
        assert isinstance(end, ToolEndEvent) and end.success
        assert len(end.result) <= AgentConfig().tool_result_preview_chars
        done = events[-1]
        assert isinstance(done, DoneEvent)
        assert done.full_text == "Il est midi."
        assert "".join(
            e.content for e in events[3:6] if isinstance(e, TextDeltaEvent)
        ).strip() == "Il est midi."
        assert await messages.count("cli") == 2

    async def test_error_event(
        self,
        dispatcher: DispatchResolver,
        memory: MemoryLifecycleManager,
        messages: SQLiteMessageRepository,
    ) -> None:
        """Test that a model failure yields one error event and stops."""
        model = ScriptedChatModel(LLMError("quota"))

        events = [event async for event in make_loop(model, dispatcher, memory).stream("x")]

        assert len(events) == 1
        assert isinstance(events[0], ErrorEvent)
        assert events[0].message == "quota"
        assert await messages.count("cli") == 0

    async def test_memory_failure_yields_error_event(
        self,
        dispatcher: DispatchResolver,
        memory: MemoryLifecycleManager,
    ) -> None:
        """Test that a store failure while loading context ends in an error event."""
        memory.load_context = AsyncMock(side_effect=RuntimeError("database is locked"))
        model = ScriptedChatModel(end_turn("jamais"))

        events = [event async for event in make_loop(model, dispatcher, memory).stream("x")]

        assert len(events) == 1
        assert isinstance(events[0], ErrorEvent)
        assert "database is locked" in events[0].message
        assert model.calls == []

    async def test_limit_done_event(
        self,
        dispatcher: DispatchResolver,
        memory: MemoryLifecycleManager,
    ) -> None:
        """Test that the done event carries the iteration-limit message."""
        model = ScriptedChatModel(tool_use(("c", "time__get", {})))

        events = [
            event
            async for event in make_loop(model, dispatcher, memory).stream(
                "Boucle", max_iterations=2
            )
        ]

        assert [e.type for e in events].count("tool_start") == 2
        assert isinstance(events[-1], DoneEvent)
        assert "2" in events[-1].full_text
