"""SQLite-backed vector index with numpy cosine search."""

import json
import logging
from collections.abc import Callable, Sequence
from contextlib import AbstractAsyncContextManager
from datetime import datetime, timezone

import numpy as np
from sqlalchemy import func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from makilab.domain.services.protocols import VectorHit
from makilab.infrastructure.persistence.models import SemanticEntryModel

logger = logging.getLogger(__name__)


class SQLiteVectorIndex:
    """Vector store for semantic memory.

    Vectors are stored as JSON arrays; search loads the candidates and
    ranks them by cosine similarity. Entries whose dimension differs from
    the query are ignored.
    """

    def __init__(
        self,
        session_factory: Callable[[], AbstractAsyncContextManager[AsyncSession]],
    ) -> None:
        self._session_factory = session_factory

    async def upsert(
        self,
        entry_id: str,
        vector: Sequence[float],
        *,
        kind: str,
        content: str,
        channel: str | None = None,
        key: str | None = None,
    ) -> None:
        """Insert or replace an entry.

        Args:
            entry_id: Stable entry id (re-indexing the same id overwrites).
            vector: Embedding vector.
            kind: Entry kind ("conversation", "fact" or "summary").
            content: Indexed text.
            channel: Originating channel, if any.
            key: Fact key, for fact entries.
        """
        async with self._session_factory() as session:
            await session.merge(
                SemanticEntryModel(
                    id=entry_id,
                    kind=kind,
                    channel=channel,
                    key=key,
                    content=content,
                    vector=json.dumps([float(v) for v in vector]),
                    updated_at=datetime.now(timezone.utc),
                )
            )
            await session.commit()

    async def search(
        self,
        vector: Sequence[float],
        limit: int = 5,
        kind: str | None = None,
    ) -> list[VectorHit]:
        """Find the entries closest to a vector.

        Args:
            vector: Query vector.
            limit: Maximum number of hits.
            kind: Restrict to one entry kind.

        Returns:
            Hits sorted by decreasing similarity.
        """
        async with self._session_factory() as session:
            stmt = select(SemanticEntryModel)
            if kind is not None:
                stmt = stmt.where(SemanticEntryModel.kind == kind)
            result = await session.exec(stmt)
            models = list(result.all())

        query = np.asarray(vector, dtype=np.float32)
        candidates: list[SemanticEntryModel] = []
        rows: list[list[float]] = []
        for model in models:
            values = json.loads(model.vector)
            if len(values) != query.shape[0]:
                logger.debug("Skipping %s: dimension mismatch", model.id)
                continue
            candidates.append(model)
            rows.append(values)

        if not candidates or limit <= 0:
            return []

        matrix = np.asarray(rows, dtype=np.float32)
        query_norm = query / (np.linalg.norm(query) + 1e-10)
        norms = np.linalg.norm(matrix, axis=1, keepdims=True) + 1e-10
        similarities = np.dot(matrix / norms, query_norm)
        order = np.argsort(similarities)[::-1][:limit]

        return [
            VectorHit(
                id=candidates[i].id,
                score=float(similarities[i]),
                kind=candidates[i].kind,
                content=candidates[i].content,
                channel=candidates[i].channel,
                key=candidates[i].key,
            )
            for i in order
        ]

    async def delete(self, entry_id: str) -> bool:
        """Remove an entry.

        Returns:
            True if the entry existed.
        """
        async with self._session_factory() as session:
            model = await session.get(SemanticEntryModel, entry_id)
            if model is None:
                return False
            await session.delete(model)
            await session.commit()
            return True

    async def count(self, kind: str | None = None) -> int:
        """Count indexed entries, optionally of one kind."""
        async with self._session_factory() as session:
            stmt = select(func.count()).select_from(SemanticEntryModel)
            if kind is not None:
                stmt = stmt.where(SemanticEntryModel.kind == kind)
            result = await session.execute(stmt)
            return result.scalar() or 0
