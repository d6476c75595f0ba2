"""LLM-based conversation summarizer used by compaction."""

from collections.abc import Sequence

from makilab.config.models import MemoryConfig
from makilab.domain.entities.message import Message, Role
from makilab.infrastructure.llm.client import LLMClient
from makilab.infrastructure.llm.templates import create_jinja_env


def build_transcript(messages: Sequence[Message]) -> str:
    """Render messages as ``USER: ...`` / ``AGENT: ...`` lines."""
    return "\n".join(
        f"{'USER' if m.role == Role.USER else 'AGENT'}: {m.content}" for m in messages
    )


class LLMConversationSummarizer:
    """Summarizes old history into a rolling summary."""

    def __init__(self, client: LLMClient, config: MemoryConfig) -> None:
        self._client = client
        self._config = config
        self._template = create_jinja_env().get_template("compaction.j2")

    async def summarize(
        self,
        messages: Sequence[Message],
        previous_summary: str | None = None,
    ) -> str:
        """Summarize messages, folding in the previous summary.

        Returns:
            Summary text, empty if there was nothing to summarize.
        """
        if not messages:
            return ""
        prompt = self._template.render(
            transcript=build_transcript(messages),
            previous_summary=previous_summary,
        )
        response = await self._client.complete(
            [{"role": "user", "content": prompt}],
            max_tokens=self._config.summary_max_tokens,
        )
        return response.strip()
