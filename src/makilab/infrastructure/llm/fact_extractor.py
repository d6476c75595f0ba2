"""LLM-based fact extraction."""

import json
import logging
import re
from collections.abc import Sequence

from makilab.config.models import MemoryConfig
from makilab.infrastructure.llm.client import LLMClient
from makilab.infrastructure.llm.exceptions import LLMOutputParseError
from makilab.infrastructure.llm.templates import create_jinja_env

logger = logging.getLogger(__name__)

_FENCE_START = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_END = re.compile(r"\s*```\s*$")


def strip_code_fences(text: str) -> str:
    """Remove a surrounding markdown code fence, if any."""
    return _FENCE_END.sub("", _FENCE_START.sub("", text.strip())).strip()


class LLMFactExtractor:
    """Extracts durable user facts from an exchange with a background model."""

    def __init__(self, client: LLMClient, config: MemoryConfig) -> None:
        """Initialize the extractor.

        Args:
            client: LLM client (background model).
            config: Memory configuration.
        """
        self._client = client
        self._config = config
        self._template = create_jinja_env().get_template("fact_extraction.j2")

    async def extract(
        self,
        user_message: str,
        assistant_reply: str,
        known_facts: dict[str, str],
        tool_outputs: Sequence[str] = (),
    ) -> dict[str, str]:
        """Extract facts from one exchange.

        Args:
            user_message: The user's message.
            assistant_reply: The final answer.
            known_facts: Facts already stored (to avoid repeats).
            tool_outputs: Excerpts of tool results produced during the turn.

        Returns:
            Facts whose key and value are both non-empty strings.

        Raises:
            LLMOutputParseError: The model output is not a JSON object.
            LLMError: The model call failed.
        """
        prompt = self._template.render(
            user_message=user_message,
            assistant_reply=assistant_reply,
            known_facts=known_facts,
            tool_outputs=list(tool_outputs),
        )
        raw = await self._client.complete(
            [{"role": "user", "content": prompt}],
            max_tokens=self._config.fact_extraction_max_tokens,
        )
        text = strip_code_fences(raw or "{}") or "{}"

        try:
            parsed = json.loads(text)
        except ValueError as e:
            raise LLMOutputParseError(f"Invalid fact JSON: {text[:200]}") from e
        if not isinstance(parsed, dict):
            raise LLMOutputParseError(f"Fact output is not an object: {text[:200]}")

        facts = {
            key: value
            for key, value in parsed.items()
            if isinstance(key, str) and isinstance(value, str) and key and value
        }
        logger.debug("Extracted %d fact(s)", len(facts))
        return facts
