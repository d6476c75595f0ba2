"""LiteLLM embedding provider."""

import logging

import litellm

from makilab.config.models import EmbeddingConfig

logger = logging.getLogger(__name__)


class LiteLLMEmbedder:
    """Embeds texts with ``litellm.aembedding``.

    Any provider failure is logged and reported as ``None`` so that
    semantic indexing degrades to a no-op.
    """

    def __init__(self, config: EmbeddingConfig) -> None:
        self._config = config

    async def embed(self, text: str) -> list[float] | None:
        """Embed a text.

        Args:
            text: Text to embed.

        Returns:
            The embedding vector, or None on failure.
        """
        if not text.strip():
            return None

        params: dict = {"model": self._config.model, "input": [text]}
        if self._config.dimensions:
            params["dimensions"] = self._config.dimensions

        try:
            response = await litellm.aembedding(**params)
            item = response.data[0]
            vector = item["embedding"] if isinstance(item, dict) else item.embedding
        except Exception as e:
            logger.warning("Embedding failed: %s", e)
            return None
        return [float(v) for v in vector]
