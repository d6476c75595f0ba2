"""Legacy get_time tool."""

import json
from datetime import datetime, timezone
from typing import Any

from makilab.infrastructure.capabilities.time import format_local


class GetTimeTool:
    """Flat tool returning the current time as a JSON string."""

    name = "get_time"
    description = (
        "Returns the current date and time. Use when the user asks about time or date."
    )
    input_schema: dict[str, Any] = {"type": "object", "properties": {}, "required": []}

    async def execute(self, input: dict[str, Any]) -> str:
        now = datetime.now(timezone.utc)
        return json.dumps(
            {
                "iso": now.isoformat(),
                "sydney": format_local(now, "Australia/Sydney"),
                "paris": format_local(now, "Europe/Paris"),
            }
        )
