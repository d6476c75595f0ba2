"""Message entity."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class Role(Enum):
    """Author of a persisted message."""

    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Message:
    """Conversation message.

    Persisted messages carry their store id, channel and creation time;
    messages built in memory (fallback history, the current user message)
    leave them unset.

    Attributes:
        role: Author of the message.
        content: Message text.
        id: Store id (insertion order within the store).
        channel: Channel the message belongs to.
        created_at: When the message was written.
    """

    role: Role
    content: str
    id: int | None = None
    channel: str | None = None
    created_at: datetime | None = None

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(cls, content: str) -> "Message":
        return cls(role=Role.ASSISTANT, content=content)
