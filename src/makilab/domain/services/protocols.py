"""Domain service protocols."""

from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from makilab.domain.entities.llm import LLMResponse, ToolSpec, TranscriptItem
from makilab.domain.entities.message import Message


class ChatModel(Protocol):
    """Tool-calling chat model.

    This is the only collaborator whose failures may abort a turn.
    """

    async def chat(
        self,
        system_prompt: str,
        messages: Sequence[TranscriptItem],
        tools: Sequence[ToolSpec],
        max_tokens: int | None = None,
    ) -> LLMResponse:
        """Run one model call.

        Args:
            system_prompt: System prompt.
            messages: Running transcript.
            tools: Callable surface.
            max_tokens: Output token budget (overrides config).

        Returns:
            Content blocks, stop reason and usage.

        Raises:
            LLMError: The provider call failed.
        """
        ...

    def stream_chat(
        self,
        system_prompt: str,
        messages: Sequence[TranscriptItem],
        tools: Sequence[ToolSpec],
        max_tokens: int | None = None,
    ) -> AsyncIterator[str | LLMResponse]:
        """Run one model call in streaming mode.

        Yields text increments as str, then exactly one LLMResponse
        assembled from the whole stream.

        Raises:
            LLMError: The provider call failed.
        """
        ...


class FactExtractor(Protocol):
    """Extracts durable facts from an exchange."""

    async def extract(
        self,
        user_message: str,
        assistant_reply: str,
        known_facts: dict[str, str],
        tool_outputs: Sequence[str] = (),
    ) -> dict[str, str]:
        """Extract facts.

        Returns:
            Flat key/value facts (possibly empty).

        Raises:
            LLMOutputParseError: The model output is not a JSON object.
            LLMError: The model call failed.
        """
        ...


class ConversationSummarizer(Protocol):
    """Summarizes a transcript for compaction."""

    async def summarize(
        self,
        messages: Sequence[Message],
        previous_summary: str | None = None,
    ) -> str:
        """Summarize messages.

        Args:
            messages: Messages to summarize, oldest first.
            previous_summary: Summary of older, already compacted history.

        Returns:
            Summary text (empty when nothing could be produced).
        """
        ...


class Embedder(Protocol):
    """Text embedding provider."""

    async def embed(self, text: str) -> list[float] | None:
        """Embed a text.

        Returns:
            The vector, or None when the provider is unavailable.
        """
        ...


@dataclass(frozen=True)
class VectorHit:
    """A semantic search match."""

    id: str
    score: float
    kind: str
    content: str
    channel: str | None = None
    key: str | None = None


class VectorIndex(Protocol):
    """Vector store for semantic memory."""

    async def upsert(
        self,
        entry_id: str,
        vector: Sequence[float],
        *,
        kind: str,
        content: str,
        channel: str | None = None,
        key: str | None = None,
    ) -> None: ...

    async def search(
        self,
        vector: Sequence[float],
        limit: int = 5,
        kind: str | None = None,
    ) -> list[VectorHit]: ...

    async def delete(self, entry_id: str) -> bool: ...


@dataclass(frozen=True)
class BridgeTool:
    """A tool exposed by an external bridge server."""

    id: str
    description: str
    input_schema: dict[str, Any] = field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )


@dataclass(frozen=True)
class BridgeServer:
    """A connected external bridge server and its tools."""

    id: str
    tools: list[BridgeTool] = field(default_factory=list)


@dataclass(frozen=True)
class BridgeCallResult:
    """Outcome of a bridge tool call."""

    success: bool
    text: str


class ExternalBridge(Protocol):
    """Third-party tool provider surfaced under namespaced tool names."""

    def list_connected_servers(self) -> list[BridgeServer]: ...

    def is_connected(self, server_id: str) -> bool: ...

    async def call_tool(
        self, server_id: str, tool_id: str, input: dict[str, Any]
    ) -> BridgeCallResult: ...


class SemanticMemory(Protocol):
    """Semantic recall over indexed conversations, facts and summaries."""

    async def search(self, query: str, limit: int = 5) -> list[VectorHit]:
        """Find indexed texts close to a query.

        Returns:
            Hits sorted by decreasing similarity (empty when disabled).
        """
        ...

    async def index_fact(self, key: str, value: str) -> None: ...

    async def forget_fact(self, key: str) -> None: ...
