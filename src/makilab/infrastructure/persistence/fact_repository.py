"""SQLite implementation of FactRepository."""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from datetime import datetime, timezone

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from makilab.infrastructure.persistence.models import FactModel


class SQLiteFactRepository:
    """SQLite-backed fact store.

    Keys are unique; writing an existing key overwrites its value.
    """

    def __init__(
        self,
        session_factory: Callable[[], AbstractAsyncContextManager[AsyncSession]],
    ) -> None:
        self._session_factory = session_factory

    async def find_all(self) -> dict[str, str]:
        """Get every fact, ordered by key."""
        async with self._session_factory() as session:
            stmt = select(FactModel).order_by(FactModel.key)
            result = await session.exec(stmt)
            return {model.key: model.value for model in result.all()}

    async def get(self, key: str) -> str | None:
        async with self._session_factory() as session:
            model = await session.get(FactModel, key)
            return model.value if model is not None else None

    async def set(self, key: str, value: str) -> None:
        """Insert or overwrite a fact."""
        async with self._session_factory() as session:
            await session.merge(
                FactModel(key=key, value=value, updated_at=datetime.now(timezone.utc))
            )
            await session.commit()

    async def delete(self, key: str) -> bool:
        """Delete a fact.

        Returns:
            True if the key existed.
        """
        async with self._session_factory() as session:
            model = await session.get(FactModel, key)
            if model is None:
                return False
            await session.delete(model)
            await session.commit()
            return True
