"""LLM-related exceptions."""


class LLMError(Exception):
    """Base exception for LLM-related errors."""


class LLMRateLimitError(LLMError):
    """Rate limit exceeded error."""


class LLMAuthenticationError(LLMError):
    """Authentication error (invalid API key, etc.)."""


class LLMTimeoutError(LLMError):
    """The provider did not answer in time."""


class LLMOutputParseError(LLMError):
    """The model output could not be parsed (e.g. invalid JSON)."""
