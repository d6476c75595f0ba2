"""Summary repository protocol."""

from typing import Protocol


class SummaryRepository(Protocol):
    """Rolling compaction summaries per channel."""

    async def save(self, channel: str, content: str, covers_up_to_id: int) -> None:
        """Store a summary covering messages up to covers_up_to_id."""
        ...

    async def find_latest(self, channel: str) -> str | None:
        """Get the most recently written summary of a channel."""
        ...
