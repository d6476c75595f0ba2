"""Fact repository protocol."""

from typing import Protocol


class FactRepository(Protocol):
    """Durable key/value facts, last write wins, shared by every channel."""

    async def find_all(self) -> dict[str, str]: ...

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...

    async def delete(self, key: str) -> bool:
        """Delete a fact.

        Returns:
            True if the fact existed.
        """
        ...
