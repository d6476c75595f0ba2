"""SQLite implementation of SummaryRepository."""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from makilab.infrastructure.persistence.models import SummaryModel


class SQLiteSummaryRepository:
    """SQLite-backed compaction summaries."""

    def __init__(
        self,
        session_factory: Callable[[], AbstractAsyncContextManager[AsyncSession]],
    ) -> None:
        self._session_factory = session_factory

    async def save(self, channel: str, content: str, covers_up_to_id: int) -> None:
        """Store a summary.

        Args:
            channel: Channel identifier.
            content: Summary text.
            covers_up_to_id: Id of the newest message the summary covers.
        """
        async with self._session_factory() as session:
            session.add(
                SummaryModel(
                    channel=channel,
                    content=content,
                    covers_up_to_id=covers_up_to_id,
                )
            )
            await session.commit()

    async def find_latest(self, channel: str) -> str | None:
        """Get the most recent summary text of a channel."""
        async with self._session_factory() as session:
            stmt = (
                select(SummaryModel)
                .where(SummaryModel.channel == channel)
                .order_by(SummaryModel.id.desc())  # type: ignore[union-attr]
                .limit(1)
            )
            result = await session.exec(stmt)
            model = result.first()
            return model.content if model is not None else None
