"""Tests for fact extraction, summarization and embeddings."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from makilab.config import EmbeddingConfig, MemoryConfig
from makilab.domain.entities.message import Message
from makilab.infrastructure.llm import (
    LiteLLMEmbedder,
    LLMConversationSummarizer,
    LLMFactExtractor,
    LLMOutputParseError,
)
from makilab.infrastructure.llm.fact_extractor import strip_code_fences
from makilab.infrastructure.llm.summarizer import build_transcript


@pytest.fixture
def client() -> MagicMock:
    """Create a mock LLMClient."""
    client = MagicMock()
    client.complete = AsyncMock()
    return client


class TestStripCodeFences:
    """strip_code_fences tests."""

    def test_json_fence(self) -> None:
        """Test that a json fence is removed."""
        assert strip_code_fences('```json\n{"a": "b"}\n```') == '{"a": "b"}'

    def test_no_fence(self) -> None:
        """Test that plain text is kept."""
        assert strip_code_fences(' {"a": "b"} ') == '{"a": "b"}'


class TestLLMFactExtractor:
    """LLMFactExtractor tests."""

    async def test_extracts_string_pairs(
        self, client: MagicMock, memory_config: MemoryConfig
    ) -> None:
        """Test that only non-empty string pairs are kept."""
        client.complete.return_value = (
            '```json\n{"city": "Sydney", "age": 42, "empty": "", "job": "dev"}\n```'
        )
        extractor = LLMFactExtractor(client, memory_config)

        facts = await extractor.extract(
            "J'habite à Sydney", "Noté !", {"name": "Alice"}, ["12:00"]
        )

        assert facts == {"city": "Sydney", "job": "dev"}
        prompt = client.complete.call_args.args[0][0]["content"]
        assert "name: Alice" in prompt
        assert "J'habite à Sydney" in prompt
        assert "12:00" in prompt
        assert client.complete.call_args.kwargs["max_tokens"] == 512

    async def test_empty_output_means_no_facts(
        self, client: MagicMock, memory_config: MemoryConfig
    ) -> None:
        """Test that an empty response yields no fact."""
        client.complete.return_value = ""

        assert await LLMFactExtractor(client, memory_config).extract("a", "b", {}) == {}

    async def test_invalid_json_raises(
        self, client: MagicMock, memory_config: MemoryConfig
    ) -> None:
        """Test that prose output is a parse error."""
        client.complete.return_value = "Je n'ai trouvé aucun fait."

        with pytest.raises(LLMOutputParseError):
            await LLMFactExtractor(client, memory_config).extract("a", "b", {})

    async def test_non_object_raises(
        self, client: MagicMock, memory_config: MemoryConfig
    ) -> None:
        """Test that a JSON array is a parse error."""
        client.complete.return_value = '["a"]'

        with pytest.raises(LLMOutputParseError):
            await LLMFactExtractor(client, memory_config).extract("a", "b", {})


class TestLLMConversationSummarizer:
    """LLMConversationSummarizer tests."""

    def test_build_transcript(self) -> None:
        """Test USER/AGENT labels."""
        transcript = build_transcript([Message.user("Salut"), Message.assistant("Bonjour")])

        assert transcript == "USER: Salut\nAGENT: Bonjour"

    async def test_summarize_includes_previous(
        self, client: MagicMock, memory_config: MemoryConfig
    ) -> None:
        """Test that the previous summary is folded into the prompt."""
        client.complete.return_value = "  Résumé.  "
        summarizer = LLMConversationSummarizer(client, memory_config)

        summary = await summarizer.summarize([Message.user("Salut")], "Avant.")

        assert summary == "Résumé."
        prompt = client.complete.call_args.args[0][0]["content"]
        assert "Avant." in prompt
        assert "USER: Salut" in prompt

    async def test_summarize_nothing(
        self, client: MagicMock, memory_config: MemoryConfig
    ) -> None:
        """Test that no messages means no call."""
        summarizer = LLMConversationSummarizer(client, memory_config)

        assert await summarizer.summarize([]) == ""
        client.complete.assert_not_awaited()


class TestLiteLLMEmbedder:
    """LiteLLMEmbedder tests."""

    async def test_embed(self) -> None:
        """Test that the vector is returned and dimensions forwarded."""
        response = SimpleNamespace(data=[{"embedding": [0.1, 0.2]}])
        embedder = LiteLLMEmbedder(EmbeddingConfig(model="text-embedding-3-small", dimensions=2))
        with patch(
            "litellm.aembedding", new=AsyncMock(return_value=response)
        ) as mock_embedding:
            vector = await embedder.embed("bonjour")

        assert vector == [0.1, 0.2]
        assert mock_embedding.call_args.kwargs["dimensions"] == 2

    async def test_failure_returns_none(self) -> None:
        """Test that provider failures degrade to None."""
        embedder = LiteLLMEmbedder(EmbeddingConfig(model="text-embedding-3-small"))
        with patch("litellm.aembedding", new=AsyncMock(side_effect=RuntimeError("x"))):
            assert await embedder.embed("bonjour") is None

    async def test_blank_text_returns_none(self) -> None:
        """Test that blank text is not embedded."""
        embedder = LiteLLMEmbedder(EmbeddingConfig(model="text-embedding-3-small"))

        assert await embedder.embed("   ") is None
