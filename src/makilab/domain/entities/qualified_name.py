"""Qualified tool names.

The model addresses every callable through a single string name:

- ``<capability>__<action>`` for capability actions,
- ``mcp_<server>__<tool>`` for tools of an external bridge server,
- any other name for a legacy flat tool.

Names are parsed once at the dispatch boundary into a QualifiedName.
"""

from dataclasses import dataclass
from enum import Enum

CAPABILITY_SEPARATOR = "__"
BRIDGE_PREFIX = "mcp_"
BRIDGE_SEPARATOR = "__"


class ToolKind(Enum):
    """Execution path of a tool name."""

    CAPABILITY = "capability"
    LEGACY = "legacy"
    BRIDGE = "bridge"


@dataclass(frozen=True)
class QualifiedName:
    """Structured form of a model-issued tool name.

    Attributes:
        kind: Execution path.
        namespace: Capability name or bridge server id ("" for legacy tools
            and malformed bridge names).
        name: Action name, bridge tool id or legacy tool name.
        raw: The original string.
    """

    kind: ToolKind
    namespace: str
    name: str
    raw: str

    @classmethod
    def parse(cls, raw: str) -> "QualifiedName":
        """Parse a tool name.

        The bridge prefix wins over the capability separator. Capability
        names are split on the first separator only, so the action keeps
        any further separator-like text verbatim.

        Args:
            raw: Tool name as issued by the model.

        Returns:
            Parsed name.
        """
        if raw.startswith(BRIDGE_PREFIX):
            rest = raw[len(BRIDGE_PREFIX):]
            server, sep, tool = rest.partition(BRIDGE_SEPARATOR)
            if not sep:
                return cls(kind=ToolKind.BRIDGE, namespace="", name=rest, raw=raw)
            return cls(kind=ToolKind.BRIDGE, namespace=server, name=tool, raw=raw)

        capability, sep, action = raw.partition(CAPABILITY_SEPARATOR)
        if sep:
            return cls(kind=ToolKind.CAPABILITY, namespace=capability, name=action, raw=raw)

        return cls(kind=ToolKind.LEGACY, namespace="", name=raw, raw=raw)

    @classmethod
    def for_capability(cls, capability: str, action: str) -> "QualifiedName":
        raw = f"{capability}{CAPABILITY_SEPARATOR}{action}"
        return cls(kind=ToolKind.CAPABILITY, namespace=capability, name=action, raw=raw)

    @classmethod
    def for_bridge(cls, server_id: str, tool_id: str) -> "QualifiedName":
        raw = f"{BRIDGE_PREFIX}{server_id}{BRIDGE_SEPARATOR}{tool_id}"
        return cls(kind=ToolKind.BRIDGE, namespace=server_id, name=tool_id, raw=raw)
