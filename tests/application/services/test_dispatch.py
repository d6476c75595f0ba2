"""Tests for DispatchResolver."""

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from makilab.application.services import DispatchResolver
from makilab.domain.entities.capability import ActionSpec
from makilab.domain.entities.tool_result import ToolResult
from makilab.domain.services.capability_registry import CapabilityRegistry
from makilab.domain.services.protocols import BridgeCallResult, BridgeServer, BridgeTool
from makilab.infrastructure.capabilities import TimeCapability


class ExplodingCapability:
    """Capability that breaks its contract by raising."""

    name = "boom"
    description = "Explose"
    actions = (ActionSpec(name="go", description="Go"),)

    async def execute(self, action: str, input: dict[str, Any]) -> ToolResult:
        raise RuntimeError("kaboom")


class EchoTool:
    name = "echo"
    description = "Echo"
    input_schema: dict[str, Any] = {"type": "object", "properties": {}}

    async def execute(self, input: dict[str, Any]) -> str:
        return f"echo {input.get('text', '')}"


class FailingTool:
    name = "fail"
    description = "Fail"
    input_schema: dict[str, Any] = {"type": "object", "properties": {}}

    async def execute(self, input: dict[str, Any]) -> str:
        raise ValueError("nope")


@pytest.fixture
def bridge() -> MagicMock:
    """Create a mock bridge with one connected server."""
    bridge = MagicMock()
    bridge.list_connected_servers.return_value = [
        BridgeServer(id="fs", tools=[BridgeTool(id="read", description="Read a file")])
    ]
    bridge.is_connected.side_effect = lambda server_id: server_id == "fs"
    bridge.call_tool = AsyncMock(return_value=BridgeCallResult(success=True, text="data"))
    return bridge


@pytest.fixture
def resolver(bridge: MagicMock) -> DispatchResolver:
    """Create a resolver over every execution path."""
    registry = CapabilityRegistry([TimeCapability(), ExplodingCapability()])
    return DispatchResolver(registry, legacy_tools=[EchoTool(), FailingTool()], bridge=bridge)


class TestToolSpecs:
    """tool_specs tests."""

    def test_order_and_names(self, resolver: DispatchResolver) -> None:
        """Test capabilities, then legacy tools, then bridge tools."""
        names = [spec.name for spec in resolver.tool_specs()]

        assert names == [
            "time__get",
            "time__get_timezone",
            "boom__go",
            "echo",
            "fail",
            "mcp_fs__read",
        ]

    def test_descriptions_are_tagged(self, resolver: DispatchResolver) -> None:
        """Test the capability and bridge description prefixes."""
        specs = {spec.name: spec for spec in resolver.tool_specs()}

        assert specs["time__get"].description.startswith("[time] ")
        assert specs["mcp_fs__read"].description == "[MCP:fs] Read a file"


class TestResolve:
    """resolve tests."""

    async def test_capability(self, resolver: DispatchResolver) -> None:
        """Test the capability path."""
        result = await resolver.resolve("time__get", {})

        assert result.success
        assert result.text.startswith("Heure actuelle")

    async def test_unknown_capability(self, resolver: DispatchResolver) -> None:
        """Test that an unknown capability is a failure naming it."""
        result = await resolver.resolve("weather__get", {})

        assert not result.success
        assert result.text == 'Erreur : subagent "weather" introuvable'
        assert result.error == "Unknown capability: weather"

    async def test_unknown_action(self, resolver: DispatchResolver) -> None:
        """Test that undeclared actions are refused before execute."""
        result = await resolver.resolve("time__set", {})

        assert not result.success
        assert result.error == "Unknown action: time.set"

    async def test_raising_capability_is_contained(
        self, resolver: DispatchResolver
    ) -> None:
        """Test that an exception becomes a failure."""
        result = await resolver.resolve("boom__go", {})

        assert not result.success
        assert "kaboom" in result.text

    async def test_non_object_input_is_empty(self, resolver: DispatchResolver) -> None:
        """Test that list or string arguments are treated as {}."""
        result = await resolver.resolve("echo", ["unexpected"])

        assert result.success
        assert result.text == "echo "

    async def test_legacy_tool(self, resolver: DispatchResolver) -> None:
        """Test that a legacy tool's text is wrapped in a success."""
        result = await resolver.resolve("echo", {"text": "salut"})

        assert result.success
        assert result.text == "echo salut"

    async def test_legacy_tool_error(self, resolver: DispatchResolver) -> None:
        """Test that a raising legacy tool becomes a failure."""
        result = await resolver.resolve("fail", {})

        assert not result.success
        assert result.text == "Erreur lors de l'exécution de fail: nope"

    async def test_unknown_legacy_tool(self, resolver: DispatchResolver) -> None:
        """Test that an unknown bare name is a failure."""
        result = await resolver.resolve("get_weather", {})

        assert not result.success
        assert result.text == 'Erreur : outil "get_weather" introuvable'

    async def test_bridge_tool(
        self, resolver: DispatchResolver, bridge: MagicMock
    ) -> None:
        """Test the bridge path."""
        result = await resolver.resolve("mcp_fs__read", {"path": "/a"})

        assert result.success
        assert result.text == "data"
        bridge.call_tool.assert_awaited_once_with("fs", "read", {"path": "/a"})

    async def test_bridge_not_connected(self, resolver: DispatchResolver) -> None:
        """Test that a disconnected server is a failure."""
        result = await resolver.resolve("mcp_git__log", {})

        assert not result.success
        assert result.text == 'MCP server "git" not connected'

    async def test_bridge_failure(
        self, resolver: DispatchResolver, bridge: MagicMock
    ) -> None:
        """Test that a failed bridge call is a failed result."""
        bridge.call_tool.return_value = BridgeCallResult(success=False, text="denied")

        result = await resolver.resolve("mcp_fs__read", {})

        assert not result.success
        assert result.text == "denied"

    async def test_malformed_bridge_name(self, resolver: DispatchResolver) -> None:
        """Test that a bridge name without server is invalid."""
        result = await resolver.resolve("mcp_lonely", {})

        assert not result.success
        assert result.text == "Invalid MCP tool name: mcp_lonely"

    async def test_no_bridge(self) -> None:
        """Test bridge names without any bridge."""
        resolver = DispatchResolver(CapabilityRegistry())

        result = await resolver.resolve("mcp_fs__read", {})

        assert not result.success
