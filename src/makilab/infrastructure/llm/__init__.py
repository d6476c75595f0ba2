"""LLM integration (LiteLLM)."""

from makilab.infrastructure.llm.client import LLMClient
from makilab.infrastructure.llm.embeddings import LiteLLMEmbedder
from makilab.infrastructure.llm.exceptions import (
    LLMAuthenticationError,
    LLMError,
    LLMOutputParseError,
    LLMRateLimitError,
    LLMTimeoutError,
)
from makilab.infrastructure.llm.fact_extractor import LLMFactExtractor
from makilab.infrastructure.llm.summarizer import LLMConversationSummarizer

__all__ = [
    "LLMAuthenticationError",
    "LLMClient",
    "LLMConversationSummarizer",
    "LLMError",
    "LLMFactExtractor",
    "LLMOutputParseError",
    "LLMRateLimitError",
    "LLMTimeoutError",
    "LiteLLMEmbedder",
]
