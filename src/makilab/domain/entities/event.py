"""Event entity for background work."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4


class EventType(Enum):
    """Background event types."""

    FACT_EXTRACTION = "fact_extraction"
    SEMANTIC_INDEX = "semantic_index"
    COMPACTION = "compaction"
    WORKFLOW = "workflow"


@dataclass(frozen=True)
class Event:
    """Background event.

    Attributes:
        type: Event type.
        payload: Event-specific data.
        created_at: Event creation time.
        id: Unique event id.
    """

    type: EventType
    payload: dict[str, Any]
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    id: str = field(default_factory=lambda: uuid4().hex)

    def get_identity_key(self) -> str:
        """Get identity key for duplicate detection.

        Compaction is coalesced per channel and workflows per name; other
        events are never coalesced.

        Returns:
            Identity key.
        """
        if self.type == EventType.COMPACTION:
            return f"compaction:{self.payload.get('channel', '')}"
        elif self.type == EventType.WORKFLOW:
            return f"workflow:{self.payload.get('name', '')}"
        return f"{self.type.value}:{self.id}"
