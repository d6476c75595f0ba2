"""Channel memory context."""

from dataclasses import dataclass, field

from makilab.domain.entities.message import Message


@dataclass(frozen=True)
class ChannelMemoryContext:
    """Memory loaded for one turn on one channel.

    Rebuilt from the store at the start of every turn.

    Attributes:
        facts: Durable key/value facts (shared by every channel).
        recent_messages: Most recent messages of the channel, oldest first.
        summary: Latest compaction summary of the channel, if any.
    """

    facts: dict[str, str] = field(default_factory=dict)
    recent_messages: list[Message] = field(default_factory=list)
    summary: str | None = None
