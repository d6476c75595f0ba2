"""Tests for CapabilityRegistry."""

from typing import Any

import pytest

from makilab.domain.entities.capability import ActionSpec
from makilab.domain.entities.tool_result import ToolResult
from makilab.domain.exceptions import CapabilityRegistrationError
from makilab.domain.services.capability_registry import CapabilityRegistry


class FakeCapability:
    """Minimal capability."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.description = f"{name} capability"
        self.actions = (ActionSpec(name="run", description="Run"),)

    async def execute(self, action: str, input: dict[str, Any]) -> ToolResult:
        return ToolResult.ok("ran")


class TestCapabilityRegistry:
    """CapabilityRegistry tests."""

    def test_keeps_registration_order(self) -> None:
        """Test that names are listed in registration order."""
        registry = CapabilityRegistry([FakeCapability("time"), FakeCapability("web")])

        assert registry.names == ["time", "web"]
        assert len(registry) == 2
        assert "web" in registry

    def test_get_unknown_returns_none(self) -> None:
        """Test that an unknown capability is None."""
        assert CapabilityRegistry().get("missing") is None

    @pytest.mark.parametrize("name", ["", "bad__name", "mcp_server"])
    def test_rejects_invalid_names(self, name: str) -> None:
        """Test that reserved or empty names are rejected."""
        with pytest.raises(CapabilityRegistrationError):
            CapabilityRegistry([FakeCapability(name)])

    def test_rejects_duplicates(self) -> None:
        """Test that a name cannot be registered twice."""
        with pytest.raises(CapabilityRegistrationError) as exc_info:
            CapabilityRegistry([FakeCapability("time"), FakeCapability("time")])

        assert exc_info.value.capability_name == "time"
