"""Tests for MemoryCapability."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from makilab.application.services import SemanticIndexer
from makilab.domain.services.protocols import VectorHit
from makilab.infrastructure.capabilities import MemoryCapability
from makilab.infrastructure.persistence import SQLiteFactRepository, SQLiteVectorIndex


@pytest.fixture
def facts(session_factory) -> SQLiteFactRepository:
    return SQLiteFactRepository(session_factory)


@pytest.fixture
def semantic() -> MagicMock:
    """Create a mock semantic memory."""
    semantic = MagicMock()
    semantic.search = AsyncMock(return_value=[])
    semantic.index_fact = AsyncMock()
    semantic.forget_fact = AsyncMock()
    return semantic


class CityEmbedder:
    """Embeds texts on whether they mention Sydney."""

    async def embed(self, text: str) -> list[float] | None:
        return [1.0 if "sydney" in text.lower() else 0.0, 0.1]


class TestMemoryCapability:
    """MemoryCapability tests."""

    def test_search_declared_only_with_semantic_memory(
        self, facts: SQLiteFactRepository, semantic: MagicMock
    ) -> None:
        """Test the declared actions."""
        plain = [a.name for a in MemoryCapability(facts).actions]
        full = [a.name for a in MemoryCapability(facts, semantic).actions]

        assert plain == ["list_facts", "remember", "forget"]
        assert full == ["list_facts", "remember", "forget", "search"]

    async def test_remember_and_list(
        self, facts: SQLiteFactRepository, semantic: MagicMock
    ) -> None:
        """Test that a remembered fact is listed and indexed."""
        capability = MemoryCapability(facts, semantic)

        result = await capability.execute("remember", {"key": "city", "value": "Sydney"})
        listed = await capability.execute("list_facts", {})

        assert result.success
        assert listed.data == {"city": "Sydney"}
        assert "- city: Sydney" in listed.text
        semantic.index_fact.assert_awaited_once_with("city", "Sydney")

    async def test_remember_requires_key_and_value(
        self, facts: SQLiteFactRepository
    ) -> None:
        """Test that missing parameters fail."""
        result = await MemoryCapability(facts).execute("remember", {"key": "x"})

        assert not result.success

    async def test_forget(self, facts: SQLiteFactRepository) -> None:
        """Test forgetting an existing and a missing fact."""
        await facts.set("pet", "chat")
        capability = MemoryCapability(facts)

        assert (await capability.execute("forget", {"key": "pet"})).success
        assert not (await capability.execute("forget", {"key": "pet"})).success

    async def test_forget_unindexes_fact(
        self, facts: SQLiteFactRepository, semantic: MagicMock
    ) -> None:
        """Test that forgetting a fact also drops it from semantic memory."""
        await facts.set("pet", "chat")

        await MemoryCapability(facts, semantic).execute("forget", {"key": "pet"})

        semantic.forget_fact.assert_awaited_once_with("pet")

    async def test_forgotten_fact_is_not_searchable(
        self, facts: SQLiteFactRepository, session_factory
    ) -> None:
        """Test that search no longer returns a forgotten fact."""
        indexer = SemanticIndexer(CityEmbedder(), SQLiteVectorIndex(session_factory))
        capability = MemoryCapability(facts, indexer)
        await capability.execute("remember", {"key": "ville", "value": "Sydney"})

        await capability.execute("forget", {"key": "ville"})
        result = await capability.execute("search", {"query": "Sydney"})

        assert result.success
        assert result.text == "Aucun résultat trouvé."

    async def test_search(
        self, facts: SQLiteFactRepository, semantic: MagicMock
    ) -> None:
        """Test that hits are rendered with kind and score."""
        semantic.search.return_value = [
            VectorHit(id="fact:city", score=0.91, kind="fact", content="city: Sydney")
        ]
        result = await MemoryCapability(facts, semantic).execute(
            "search", {"query": "où j'habite", "limit": 3}
        )

        assert result.success
        assert "[fact] (0.91) city: Sydney" in result.text
        semantic.search.assert_awaited_once_with("où j'habite", limit=3)

    async def test_search_unavailable_without_semantic_memory(
        self, facts: SQLiteFactRepository
    ) -> None:
        """Test that search is unknown without semantic memory."""
        result = await MemoryCapability(facts).execute("search", {"query": "x"})

        assert not result.success

    async def test_store_errors_become_failures(self) -> None:
        """Test that repository errors never escape."""
        broken = MagicMock()
        broken.find_all = AsyncMock(side_effect=RuntimeError("db down"))

        result = await MemoryCapability(broken).execute("list_facts", {})

        assert not result.success
        assert result.error == "db down"
