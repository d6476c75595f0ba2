"""Background memory event handlers."""

import logging

from makilab.application.services.memory_lifecycle import MemoryLifecycleManager
from makilab.domain.entities.event import Event, EventType
from makilab.infrastructure.events.dispatcher import event_handler

logger = logging.getLogger(__name__)


class FactExtractionHandler:
    """Handler for FACT_EXTRACTION events."""

    def __init__(self, memory: MemoryLifecycleManager) -> None:
        self._memory = memory

    @event_handler(EventType.FACT_EXTRACTION)
    async def handle(self, event: Event) -> None:
        """Extract and store facts from the exchange in the payload."""
        payload = event.payload
        logger.debug("Handling FACT_EXTRACTION event [%s]", payload.get("channel"))
        await self._memory.extract_facts(
            payload["user_message"],
            payload["assistant_reply"],
            payload.get("tool_outputs", []),
        )


class SemanticIndexHandler:
    """Handler for SEMANTIC_INDEX events."""

    def __init__(self, memory: MemoryLifecycleManager) -> None:
        self._memory = memory

    @event_handler(EventType.SEMANTIC_INDEX)
    async def handle(self, event: Event) -> None:
        """Index the conversation exchange in the payload."""
        payload = event.payload
        if payload.get("kind") != "conversation":
            logger.warning("Unsupported SEMANTIC_INDEX kind: %s", payload.get("kind"))
            return
        await self._memory.index_conversation(
            payload["channel"], payload["user_message"], payload["assistant_reply"]
        )


class CompactionHandler:
    """Handler for COMPACTION events.

    Compaction events are coalesced per channel by the queue and the loop
    runs them one at a time, so a channel is never compacted twice
    concurrently.
    """

    def __init__(self, memory: MemoryLifecycleManager) -> None:
        self._memory = memory

    @event_handler(EventType.COMPACTION)
    async def handle(self, event: Event) -> None:
        channel = event.payload["channel"]
        logger.debug("Handling COMPACTION event [%s]", channel)
        await self._memory.compact(channel)
