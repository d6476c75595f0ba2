"""Memory lifecycle: history persistence, compaction and enrichment."""

import logging
from collections.abc import Sequence

from makilab.config.models import MemoryConfig
from makilab.domain.entities.event import Event, EventType
from makilab.domain.entities.memory_context import ChannelMemoryContext
from makilab.domain.entities.message import Role
from makilab.domain.repositories import (
    FactRepository,
    MessageRepository,
    SummaryRepository,
)
from makilab.domain.services.protocols import ConversationSummarizer, FactExtractor
from makilab.application.services.semantic_indexer import SemanticIndexer
from makilab.infrastructure.events.queue import EventQueue
from makilab.infrastructure.llm.exceptions import LLMOutputParseError

logger = logging.getLogger(__name__)


def excerpt_tool_outputs(outputs: Sequence[str], budget: int) -> list[str]:
    """Cut tool outputs so that their total length stays within budget.

    Args:
        outputs: Tool result texts, in call order.
        budget: Maximum total number of characters.

    Returns:
        The leading outputs, the last one possibly truncated.
    """
    excerpts: list[str] = []
    remaining = budget
    for output in outputs:
        if remaining <= 0:
            break
        excerpts.append(output[:remaining])
        remaining -= len(output)
    return excerpts


class MemoryLifecycleManager:
    """Owns the channel memory around a turn.

    The turn loads its context and records its exchange through this
    manager. Fact extraction, semantic indexing and compaction run later
    as background events; their failures are logged and swallowed here.
    """

    def __init__(
        self,
        message_repository: MessageRepository,
        summary_repository: SummaryRepository,
        fact_repository: FactRepository,
        config: MemoryConfig,
        fact_extractor: FactExtractor | None = None,
        summarizer: ConversationSummarizer | None = None,
        indexer: SemanticIndexer | None = None,
        queue: EventQueue | None = None,
    ) -> None:
        """Initialize.

        Args:
            message_repository: Channel history store.
            summary_repository: Compaction summary store.
            fact_repository: Durable fact store.
            config: Memory configuration.
            fact_extractor: Background fact extractor.
            summarizer: Background summarizer for compaction.
            indexer: Semantic indexer.
            queue: Background event queue. Without it nothing is scheduled.
        """
        self._messages = message_repository
        self._summaries = summary_repository
        self._facts = fact_repository
        self._config = config
        self._fact_extractor = fact_extractor
        self._summarizer = summarizer
        self._indexer = indexer or SemanticIndexer()
        self._queue = queue

    async def load_context(self, channel: str) -> ChannelMemoryContext:
        """Rebuild the memory context of a channel from the store."""
        return ChannelMemoryContext(
            facts=await self._facts.find_all(),
            recent_messages=await self._messages.find_recent(
                channel, limit=self._config.recent_message_limit
            ),
            summary=await self._summaries.find_latest(channel),
        )

    async def record_exchange(
        self, channel: str, user_message: str, assistant_reply: str
    ) -> None:
        """Persist the user message, then the final answer."""
        await self._messages.save(channel, Role.USER, user_message)
        await self._messages.save(channel, Role.ASSISTANT, assistant_reply)

    async def schedule_enrichment(
        self,
        channel: str,
        user_message: str,
        assistant_reply: str,
        tool_outputs: Sequence[str] = (),
    ) -> None:
        """Queue fact extraction, indexing and compaction for an exchange.

        Never raises.
        """
        if self._queue is None:
            return
        excerpts = excerpt_tool_outputs(
            tool_outputs, self._config.tool_output_excerpt_chars
        )
        events = [
            Event(
                type=EventType.FACT_EXTRACTION,
                payload={
                    "channel": channel,
                    "user_message": user_message,
                    "assistant_reply": assistant_reply,
                    "tool_outputs": excerpts,
                },
            ),
            Event(
                type=EventType.SEMANTIC_INDEX,
                payload={
                    "kind": "conversation",
                    "channel": channel,
                    "user_message": user_message,
                    "assistant_reply": assistant_reply,
                },
            ),
            Event(type=EventType.COMPACTION, payload={"channel": channel}),
        ]
        for event in events:
            try:
                await self._queue.enqueue(event)
            except Exception:
                logger.exception("Failed to schedule %s", event.type.value)

    async def extract_facts(
        self,
        user_message: str,
        assistant_reply: str,
        tool_outputs: Sequence[str] = (),
    ) -> dict[str, str]:
        """Extract facts from an exchange and store them.

        Returns:
            The stored facts (empty on any failure).
        """
        if self._fact_extractor is None:
            return {}
        try:
            known = await self._facts.find_all()
            facts = await self._fact_extractor.extract(
                user_message, assistant_reply, known, tool_outputs
            )
            for key, value in facts.items():
                await self._facts.set(key, value)
                await self._indexer.index_fact(key, value)
        except LLMOutputParseError as e:
            logger.warning("Fact extraction output discarded: %s", e)
            return {}
        except Exception:
            logger.exception("Fact extraction failed (non-critical)")
            return {}

        if facts:
            logger.info("%d fact(s) extracted", len(facts))
        return facts

    async def compact(self, channel: str) -> int:
        """Summarize and delete the oldest messages of a channel.

        Runs only when the channel holds more than the threshold. The
        oldest ``count - keep_recent`` messages are summarized together
        with the previous summary; the new summary is written before the
        covered messages are deleted. An empty summary leaves the store
        untouched.

        Args:
            channel: Channel identifier.

        Returns:
            Number of deleted messages (0 when nothing was compacted).
        """
        if self._summarizer is None:
            return 0
        try:
            total = await self._messages.count(channel)
            if total <= self._config.compaction_threshold:
                return 0

            to_compact = total - self._config.compaction_keep_recent
            old_messages = await self._messages.find_oldest(channel, to_compact)
            if not old_messages:
                return 0
            last_id = old_messages[-1].id
            if last_id is None:
                logger.warning("Compaction [%s]: messages without id, skipped", channel)
                return 0

            previous = await self._summaries.find_latest(channel)
            summary = (await self._summarizer.summarize(old_messages, previous)).strip()
            if not summary:
                logger.warning("Compaction [%s]: empty summary, skipped", channel)
                return 0

            await self._summaries.save(channel, summary, last_id)
            deleted = await self._messages.delete_up_to(channel, last_id)
        except Exception:
            logger.exception("Compaction failed (non-critical) [%s]", channel)
            return 0

        logger.info(
            "Compaction [%s]: %d messages -> summary (%d chars)",
            channel,
            deleted,
            len(summary),
        )
        await self._indexer.index_summary(channel, summary, last_id)
        return deleted

    async def index_conversation(
        self, channel: str, user_message: str, assistant_reply: str
    ) -> None:
        try:
            await self._indexer.index_conversation(channel, user_message, assistant_reply)
        except Exception:
            logger.exception("Conversation indexing failed (non-critical)")
