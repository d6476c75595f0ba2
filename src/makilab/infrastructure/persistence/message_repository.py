"""SQLite implementation of MessageRepository."""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager

from sqlalchemy import delete, func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from makilab.domain.entities.message import Message, Role
from makilab.infrastructure.persistence.datetime_utils import normalize_to_utc
from makilab.infrastructure.persistence.models import MessageModel


class SQLiteMessageRepository:
    """SQLite-backed conversation history.

    Messages are ordered by their autoincrement id, which follows
    insertion order even when timestamps collide.
    """

    def __init__(
        self,
        session_factory: Callable[[], AbstractAsyncContextManager[AsyncSession]],
    ) -> None:
        """Initialize.

        Args:
            session_factory: Async session factory.
        """
        self._session_factory = session_factory

    async def save(self, channel: str, role: Role, content: str) -> Message:
        """Append a message.

        Args:
            channel: Channel identifier.
            role: Author role.
            content: Message text.

        Returns:
            The stored message with its id.
        """
        async with self._session_factory() as session:
            model = MessageModel(channel=channel, role=role.value, content=content)
            session.add(model)
            await session.commit()
            await session.refresh(model)
            return self._to_entity(model)

    async def find_recent(self, channel: str, limit: int = 20) -> list[Message]:
        """Get the latest messages of a channel, oldest first.

        Args:
            channel: Channel identifier.
            limit: Maximum number of messages.

        Returns:
            Messages in chronological order.
        """
        async with self._session_factory() as session:
            stmt = (
                select(MessageModel)
                .where(MessageModel.channel == channel)
                .order_by(MessageModel.id.desc())  # type: ignore[union-attr]
                .limit(limit)
            )
            result = await session.exec(stmt)
            models = list(result.all())
            return [self._to_entity(m) for m in reversed(models)]

    async def count(self, channel: str) -> int:
        """Count the stored messages of a channel."""
        async with self._session_factory() as session:
            stmt = (
                select(func.count())
                .select_from(MessageModel)
                .where(MessageModel.channel == channel)
            )
            result = await session.execute(stmt)
            return result.scalar() or 0

    async def find_oldest(self, channel: str, count: int) -> list[Message]:
        """Get the oldest messages of a channel, oldest first."""
        async with self._session_factory() as session:
            stmt = (
                select(MessageModel)
                .where(MessageModel.channel == channel)
                .order_by(MessageModel.id.asc())  # type: ignore[union-attr]
                .limit(count)
            )
            result = await session.exec(stmt)
            return [self._to_entity(m) for m in result.all()]

    async def delete_up_to(self, channel: str, last_id: int) -> int:
        """Delete the messages of a channel with id <= last_id.

        Returns:
            Number of deleted rows.
        """
        async with self._session_factory() as session:
            stmt = delete(MessageModel).where(
                MessageModel.channel == channel,  # type: ignore[arg-type]
                MessageModel.id <= last_id,  # type: ignore[arg-type,operator]
            )
            result = await session.execute(stmt)
            await session.commit()
            return result.rowcount or 0

    def _to_entity(self, model: MessageModel) -> Message:
        return Message(
            role=Role(model.role),
            content=model.content,
            id=model.id,
            channel=model.channel,
            created_at=normalize_to_utc(model.created_at),
        )
