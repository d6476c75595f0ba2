"""LLM client wrapper."""

import logging
from collections.abc import AsyncIterator, Sequence
from typing import Any

import litellm
from litellm.exceptions import AuthenticationError, RateLimitError, Timeout

from makilab.config import LLMConfig
from makilab.domain.entities.llm import LLMResponse, ToolSpec, TranscriptItem
from makilab.infrastructure.llm.exceptions import (
    LLMAuthenticationError,
    LLMError,
    LLMOutputParseError,
    LLMRateLimitError,
    LLMTimeoutError,
)
from makilab.infrastructure.llm.format import (
    parse_response,
    to_openai_messages,
    to_openai_tools,
)

logger = logging.getLogger(__name__)


def _map_error(e: Exception) -> LLMError:
    if isinstance(e, LLMError):
        return e
    if isinstance(e, AuthenticationError):
        logger.error("LLM authentication error: %s", e)
        return LLMAuthenticationError(str(e))
    if isinstance(e, RateLimitError):
        logger.warning("LLM rate limit exceeded: %s", e)
        return LLMRateLimitError(str(e))
    if isinstance(e, Timeout):
        logger.warning("LLM timeout: %s", e)
        return LLMTimeoutError(str(e))
    logger.error("LLM error: %s", e)
    return LLMError(str(e))


def _parse(response: Any) -> LLMResponse:
    try:
        return parse_response(response)
    except (AttributeError, IndexError, KeyError, TypeError) as e:
        logger.error("Malformed LLM response: %r", e)
        raise LLMOutputParseError(f"Malformed LLM response: {e!r}") from e


class LLMClient:
    """LiteLLM wrapper client.

    Applies the configured model settings, converts domain transcripts to
    the OpenAI wire format and maps provider errors onto LLMError.
    """

    def __init__(self, config: LLMConfig, debug_llm_messages: bool = False) -> None:
        """Initialize the client.

        Args:
            config: LLM configuration (model, temperature, max_tokens).
            debug_llm_messages: If True, log LLM messages at INFO level.
        """
        self._config = config
        self._debug_llm_messages = debug_llm_messages

    def _params(self, messages: list[dict[str, Any]], **kwargs: Any) -> dict[str, Any]:
        params = {
            "model": self._config.model,
            "temperature": self._config.temperature,
            "max_tokens": self._config.max_tokens,
            "messages": messages,
        }
        params.update({k: v for k, v in kwargs.items() if v is not None})
        return params

    async def complete(
        self,
        messages: list[dict[str, Any]],
        **kwargs: Any,
    ) -> str:
        """Execute a plain chat completion.

        Args:
            messages: OpenAI-format message list.
            **kwargs: Additional parameters (override config).

        Returns:
            Generated text (empty string when the model returned none).

        Raises:
            LLMAuthenticationError: Invalid API key.
            LLMRateLimitError: Rate limit exceeded.
            LLMTimeoutError: Request timed out.
            LLMError: Other API errors.
        """
        params = self._params(messages, **kwargs)
        logger.debug("LLM request: model=%s", params["model"])
        self._log_messages(messages)

        try:
            response = await litellm.acompletion(**params)
        except Exception as e:
            raise _map_error(e) from e

        try:
            content = response.choices[0].message.content or ""
        except (AttributeError, IndexError) as e:
            raise LLMOutputParseError(f"Malformed LLM response: {e!r}") from e
        self._log_response(content)
        return content

    async def chat(
        self,
        system_prompt: str,
        messages: Sequence[TranscriptItem],
        tools: Sequence[ToolSpec],
        max_tokens: int | None = None,
    ) -> LLMResponse:
        """Run one tool-calling model call.

        Args:
            system_prompt: System prompt.
            messages: Running transcript.
            tools: Callable surface.
            max_tokens: Output token budget (overrides config).

        Returns:
            Parsed response.

        Raises:
            LLMError: The provider call failed.
        """
        wire_messages = to_openai_messages(system_prompt, messages)
        params = self._params(
            wire_messages,
            tools=to_openai_tools(tools) or None,
            max_tokens=max_tokens,
        )
        logger.debug(
            "LLM request: model=%s tools=%d", params["model"], len(tools)
        )
        self._log_messages(wire_messages)

        try:
            response = await litellm.acompletion(**params)
        except Exception as e:
            raise _map_error(e) from e

        result = _parse(response)
        self._log_response(result.text)
        return result

    async def stream_chat(
        self,
        system_prompt: str,
        messages: Sequence[TranscriptItem],
        tools: Sequence[ToolSpec],
        max_tokens: int | None = None,
    ) -> AsyncIterator[str | LLMResponse]:
        """Run one model call in streaming mode.

        Yields text increments as they arrive, then the LLMResponse
        rebuilt from every chunk.

        Raises:
            LLMError: The provider call failed.
        """
        wire_messages = to_openai_messages(system_prompt, messages)
        params = self._params(
            wire_messages,
            tools=to_openai_tools(tools) or None,
            max_tokens=max_tokens,
            stream=True,
        )
        logger.debug("LLM stream request: model=%s", params["model"])
        self._log_messages(wire_messages)

        chunks: list[Any] = []
        try:
            stream = await litellm.acompletion(**params)
            async for chunk in stream:
                chunks.append(chunk)
                if not chunk.choices:
                    continue
                delta = getattr(chunk.choices[0].delta, "content", None)
                if delta:
                    yield delta
            response = litellm.stream_chunk_builder(chunks, messages=wire_messages)
        except Exception as e:
            raise _map_error(e) from e

        if response is None:
            raise LLMError("Empty stream from provider")

        result = _parse(response)
        self._log_response(result.text)
        yield result

    def _should_log(self) -> bool:
        return self._debug_llm_messages or logger.isEnabledFor(logging.DEBUG)

    def _log_messages(self, messages: list[dict[str, Any]]) -> None:
        """Log LLM request messages."""
        if not self._should_log():
            return
        log_func = logger.info if self._debug_llm_messages else logger.debug
        log_func("=== LLM Request Messages ===")
        for i, msg in enumerate(messages):
            log_func("[%d] role=%s", i, msg.get("role", "unknown"))
            log_func("    content: %s", msg.get("content", ""))
        log_func("=== End of Messages ===")

    def _log_response(self, response: str) -> None:
        """Log LLM response."""
        if not self._should_log():
            return
        log_func = logger.info if self._debug_llm_messages else logger.debug
        log_func("=== LLM Response ===")
        log_func("response: %s", response)
        log_func("=== End of Response ===")
