"""Tool result entity."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ToolResult:
    """Uniform outcome of a tool, capability or bridge call.

    Attributes:
        success: Whether the call succeeded.
        text: Human-readable text fed back to the model.
        data: Structured payload for programmatic use.
        error: Error message (only when success is False).
    """

    success: bool
    text: str
    data: Any = None
    error: str | None = None

    @classmethod
    def ok(cls, text: str, data: Any = None) -> "ToolResult":
        return cls(success=True, text=text, data=data)

    @classmethod
    def failure(cls, text: str, error: str | None = None) -> "ToolResult":
        """Build a failed result.

        Args:
            text: Human-readable message.
            error: Error detail. Defaults to the message itself.

        Returns:
            ToolResult with success=False.
        """
        return cls(success=False, text=text, error=error if error is not None else text)

    def to_model_content(self) -> str:
        """Text handed back to the model for this result."""
        if self.success or not self.error or self.error == self.text:
            return self.text
        return f"{self.text}\nError: {self.error}"
