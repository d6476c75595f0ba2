"""Tests for TimeCapability and the legacy get_time tool."""

import json

from makilab.infrastructure.capabilities import TimeCapability
from makilab.infrastructure.tools import GetTimeTool


class TestTimeCapability:
    """TimeCapability tests."""

    async def test_get(self) -> None:
        """Test the three renderings of the current time."""
        result = await TimeCapability().execute("get", {})

        assert result.success
        assert result.text.startswith("Heure actuelle")
        assert set(result.data) == {"iso", "sydney", "paris"}
        assert "Sydney" in result.text and "Paris" in result.text

    async def test_get_timezone(self) -> None:
        """Test a valid IANA zone."""
        result = await TimeCapability().execute(
            "get_timezone", {"timezone": "Asia/Tokyo"}
        )

        assert result.success
        assert result.data["timezone"] == "Asia/Tokyo"

    async def test_get_timezone_unknown(self) -> None:
        """Test that an unknown zone is a failed result."""
        result = await TimeCapability().execute(
            "get_timezone", {"timezone": "Mars/Olympus"}
        )

        assert not result.success
        assert "Mars/Olympus" in result.text

    async def test_unknown_action(self) -> None:
        """Test that an unknown action never raises."""
        result = await TimeCapability().execute("dance", {})

        assert not result.success


class TestGetTimeTool:
    """GetTimeTool tests."""

    async def test_returns_json(self) -> None:
        """Test the JSON payload."""
        payload = json.loads(await GetTimeTool().execute({}))

        assert set(payload) == {"iso", "sydney", "paris"}
