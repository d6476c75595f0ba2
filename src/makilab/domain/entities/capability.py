"""Capability (subagent) contracts."""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from makilab.domain.entities.tool_result import ToolResult


@dataclass(frozen=True)
class ActionSpec:
    """An action exposed by a capability.

    Attributes:
        name: Action name (may contain underscores).
        description: What the action does, shown to the model.
        input_schema: JSON schema (object subset) of the action input.
    """

    name: str
    description: str
    input_schema: dict[str, Any] = field(
        default_factory=lambda: {"type": "object", "properties": {}, "required": []}
    )

    @property
    def required_params(self) -> list[str]:
        return list(self.input_schema.get("required", []))


@runtime_checkable
class Capability(Protocol):
    """A named provider of actions.

    Implementations must never raise from execute(); errors are reported
    as failed ToolResults.
    """

    @property
    def name(self) -> str: ...

    @property
    def description(self) -> str: ...

    @property
    def actions(self) -> Sequence[ActionSpec]: ...

    async def execute(self, action: str, input: dict[str, Any]) -> ToolResult: ...


@runtime_checkable
class LegacyTool(Protocol):
    """A flat tool returning plain text. May raise."""

    @property
    def name(self) -> str: ...

    @property
    def description(self) -> str: ...

    @property
    def input_schema(self) -> dict[str, Any]: ...

    async def execute(self, input: dict[str, Any]) -> str: ...
