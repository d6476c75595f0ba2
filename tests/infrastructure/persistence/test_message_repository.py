"""Tests for SQLiteMessageRepository."""

import pytest

from makilab.domain.entities.message import Role
from makilab.infrastructure.persistence import SQLiteMessageRepository


@pytest.fixture
def repository(session_factory) -> SQLiteMessageRepository:
    """Create test repository."""
    return SQLiteMessageRepository(session_factory)


async def fill(repository: SQLiteMessageRepository, channel: str, n: int) -> None:
    for i in range(n):
        role = Role.USER if i % 2 == 0 else Role.ASSISTANT
        await repository.save(channel, role, f"m{i}")


class TestSave:
    """save method tests."""

    async def test_save_returns_stored_message(
        self, repository: SQLiteMessageRepository
    ) -> None:
        """Test that save assigns an id and a UTC timestamp."""
        message = await repository.save("cli", Role.USER, "Bonjour")

        assert message.id is not None
        assert message.channel == "cli"
        assert message.role == Role.USER
        assert message.created_at is not None
        assert message.created_at.tzinfo is not None


class TestFindRecent:
    """find_recent method tests."""

    async def test_returns_latest_in_chronological_order(
        self, repository: SQLiteMessageRepository
    ) -> None:
        """Test the window and its order."""
        await fill(repository, "cli", 5)

        messages = await repository.find_recent("cli", limit=3)

        assert [m.content for m in messages] == ["m2", "m3", "m4"]

    async def test_channels_are_isolated(
        self, repository: SQLiteMessageRepository
    ) -> None:
        """Test that other channels are not returned."""
        await fill(repository, "cli", 2)
        await fill(repository, "slack", 3)

        assert len(await repository.find_recent("cli")) == 2
        assert await repository.count("slack") == 3


class TestCompactionSupport:
    """find_oldest / delete_up_to tests."""

    async def test_find_oldest(self, repository: SQLiteMessageRepository) -> None:
        """Test that the oldest messages come first."""
        await fill(repository, "cli", 4)

        oldest = await repository.find_oldest("cli", 2)

        assert [m.content for m in oldest] == ["m0", "m1"]

    async def test_delete_up_to(self, repository: SQLiteMessageRepository) -> None:
        """Test that only messages up to the id of the channel go."""
        await fill(repository, "cli", 4)
        await fill(repository, "other", 2)
        oldest = await repository.find_oldest("cli", 3)

        deleted = await repository.delete_up_to("cli", oldest[-1].id)

        assert deleted == 3
        assert [m.content for m in await repository.find_recent("cli")] == ["m3"]
        assert await repository.count("other") == 2
