"""External tool bridge."""

from makilab.infrastructure.bridge.mcp_bridge import MCPBridge

__all__ = ["MCPBridge"]
