"""Semantic indexing of conversations, facts and summaries."""

import logging
from uuid import uuid4

from makilab.domain.services.protocols import Embedder, VectorHit, VectorIndex

logger = logging.getLogger(__name__)


class SemanticIndexer:
    """Embeds texts and upserts them into the vector index.

    Without an embedder, or when the embedder returns no vector, every
    operation is a silent no-op. Failures are logged and never raised.
    """

    def __init__(
        self,
        embedder: Embedder | None = None,
        index: VectorIndex | None = None,
    ) -> None:
        self._embedder = embedder
        self._index = index

    @property
    def enabled(self) -> bool:
        return self._embedder is not None and self._index is not None

    async def index_conversation(
        self, channel: str, user_message: str, assistant_message: str
    ) -> None:
        content = f"User: {user_message}\nAssistant: {assistant_message}"
        await self._upsert(
            f"conversation:{uuid4().hex}", content, kind="conversation", channel=channel
        )

    async def index_fact(self, key: str, value: str) -> None:
        await self._upsert(f"fact:{key}", f"{key}: {value}", kind="fact", key=key)

    async def forget_fact(self, key: str) -> None:
        """Drop the indexed entry of a fact, if any."""
        if self._index is None:
            return
        try:
            removed = await self._index.delete(f"fact:{key}")
        except Exception as e:
            logger.warning("Removing fact:%s from the index failed: %s", key, e)
            return
        if removed:
            logger.info("Unindexed fact:%s", key)

    async def index_summary(
        self, channel: str, summary: str, covers_up_to_id: int
    ) -> None:
        await self._upsert(
            f"summary:{channel}:{covers_up_to_id}",
            summary,
            kind="summary",
            channel=channel,
        )

    async def search(self, query: str, limit: int = 5) -> list[VectorHit]:
        """Find indexed texts close to a query.

        Args:
            query: Natural-language query.
            limit: Maximum number of hits.

        Returns:
            Hits by decreasing similarity; empty when disabled.
        """
        if self._embedder is None or self._index is None:
            return []
        vector = await self._embedder.embed(query)
        if vector is None:
            return []
        return await self._index.search(vector, limit=limit)

    async def _upsert(
        self,
        entry_id: str,
        content: str,
        *,
        kind: str,
        channel: str | None = None,
        key: str | None = None,
    ) -> None:
        if self._embedder is None or self._index is None:
            return
        try:
            vector = await self._embedder.embed(content)
            if vector is None:
                return
            await self._index.upsert(
                entry_id, vector, kind=kind, content=content, channel=channel, key=key
            )
        except Exception as e:
            logger.warning("Semantic indexing of %s failed (non-critical): %s", entry_id, e)
            return
        logger.info("Indexed %s", entry_id)
