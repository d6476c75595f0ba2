"""Message repository protocol."""

from typing import Protocol

from makilab.domain.entities.message import Message, Role


class MessageRepository(Protocol):
    """Channel-scoped, insertion-ordered message history."""

    async def save(self, channel: str, role: Role, content: str) -> Message:
        """Append a message to a channel.

        Args:
            channel: Channel name.
            role: Author role.
            content: Message text.

        Returns:
            The stored message (with its id).
        """
        ...

    async def find_recent(self, channel: str, limit: int = 20) -> list[Message]:
        """Get the most recent messages of a channel.

        Args:
            channel: Channel name.
            limit: Maximum number of messages.

        Returns:
            Messages in chronological order (oldest first).
        """
        ...

    async def count(self, channel: str) -> int:
        """Count the messages of a channel."""
        ...

    async def find_oldest(self, channel: str, count: int) -> list[Message]:
        """Get the oldest messages of a channel, oldest first."""
        ...

    async def delete_up_to(self, channel: str, last_id: int) -> int:
        """Delete every message of a channel whose id is <= last_id.

        Returns:
            Number of deleted messages.
        """
        ...
