"""Database management."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

# Import models to register them with SQLModel metadata
from makilab.infrastructure.persistence import models as _models  # noqa: F401
from makilab.infrastructure.persistence.exceptions import DatabaseError


class DatabaseManager:
    """SQLite database lifecycle.

    Owns the async engine (aiosqlite) and the session factory.
    """

    def __init__(self, database_path: str) -> None:
        """Initialize.

        Args:
            database_path: SQLite file path, or ":memory:" for an
                in-memory database.
        """
        self._database_path = database_path
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    def get_engine(self) -> AsyncEngine:
        """Get the async engine, creating it on first use.

        The parent directory of the database file is created if needed.

        Returns:
            AsyncEngine instance
        """
        if self._engine is not None:
            return self._engine

        if self._database_path != ":memory:":
            db_path = Path(self._database_path)
            db_path.parent.mkdir(parents=True, exist_ok=True)
            url = f"sqlite+aiosqlite:///{self._database_path}"
        else:
            url = "sqlite+aiosqlite:///:memory:"

        self._engine = create_async_engine(url)
        return self._engine

    async def create_tables(self) -> None:
        """Create missing tables.

        Raises:
            DatabaseError: If the database cannot be opened or migrated.
        """
        engine = self.get_engine()
        try:
            async with engine.begin() as conn:
                await conn.run_sync(SQLModel.metadata.create_all)
        except SQLAlchemyError as e:
            raise DatabaseError(
                self._database_path, f"failed to create tables: {e}"
            ) from e

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Open a session (async context manager).

        Yields:
            AsyncSession instance
        """
        if self._session_factory is None:
            self._session_factory = async_sessionmaker(
                self.get_engine(), class_=AsyncSession, expire_on_commit=False
            )
        async with self._session_factory() as session:
            yield session

    async def close(self) -> None:
        """Dispose the engine and its connections."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
