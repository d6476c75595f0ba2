"""Time capability."""

import logging
from datetime import datetime, timezone
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from makilab.domain.entities.capability import ActionSpec
from makilab.domain.entities.tool_result import ToolResult

logger = logging.getLogger(__name__)

LOCAL_FORMAT = "%d/%m/%Y %H:%M:%S"


def format_local(now: datetime, zone: str) -> str:
    """Render an instant in an IANA zone.

    Raises:
        ZoneInfoNotFoundError: Unknown zone.
    """
    return now.astimezone(ZoneInfo(zone)).strftime(LOCAL_FORMAT)


class TimeCapability:
    """Current date and time in several time zones."""

    name = "time"
    description = (
        "Renvoie la date et l'heure actuelles dans différents fuseaux horaires. "
        "Utilise quand l'utilisateur demande quelle heure il est, la date, "
        "le jour de la semaine, etc."
    )
    actions = (
        ActionSpec(
            name="get",
            description=(
                "Heure actuelle en ISO, Sydney (Australia/Sydney) et Paris (Europe/Paris)"
            ),
        ),
        ActionSpec(
            name="get_timezone",
            description="Heure actuelle dans un fuseau horaire IANA spécifique",
            input_schema={
                "type": "object",
                "properties": {
                    "timezone": {
                        "type": "string",
                        "description": (
                            "Fuseau IANA ex: America/New_York, Europe/London, Asia/Tokyo"
                        ),
                    },
                },
                "required": ["timezone"],
            },
        ),
    )

    async def execute(self, action: str, input: dict[str, Any]) -> ToolResult:
        now = datetime.now(timezone.utc)
        if action == "get":
            iso = now.isoformat()
            sydney = format_local(now, "Australia/Sydney")
            paris = format_local(now, "Europe/Paris")
            return ToolResult.ok(
                f"Heure actuelle — ISO: {iso} | Sydney: {sydney} | Paris: {paris}",
                data={"iso": iso, "sydney": sydney, "paris": paris},
            )

        if action == "get_timezone":
            zone = str(input.get("timezone", ""))
            try:
                local = format_local(now, zone)
            except (ZoneInfoNotFoundError, ValueError) as e:
                logger.info("Unknown timezone requested: %s", zone)
                return ToolResult.failure(
                    f"Fuseau horaire inconnu : {zone}", error=str(e) or zone
                )
            return ToolResult.ok(
                f"Heure à {zone} : {local}",
                data={"iso": now.isoformat(), "timezone": zone, "local": local},
            )

        return ToolResult.failure(
            f"Action inconnue : {action}",
            error=f"Action '{action}' non supportée par le subagent time",
        )
