"""Web capability: search via Tavily, page fetch via a markdown endpoint."""

import logging
from typing import Any

import httpx
from tavily import AsyncTavilyClient

from makilab.config.models import WebConfig
from makilab.domain.entities.capability import ActionSpec
from makilab.domain.entities.tool_result import ToolResult

logger = logging.getLogger(__name__)

SEARCH_ACTION = ActionSpec(
    name="search",
    description="Recherche sur le web et retourne les meilleurs résultats avec leurs snippets",
    input_schema={
        "type": "object",
        "properties": {
            "query": {"type": "string", "description": "Requête de recherche"},
        },
        "required": ["query"],
    },
)

FETCH_ACTION = ActionSpec(
    name="fetch",
    description="Récupère le contenu d'une page web au format Markdown",
    input_schema={
        "type": "object",
        "properties": {
            "url": {"type": "string", "description": "URL complète à récupérer"},
        },
        "required": ["url"],
    },
)


def _truncate(content: str, max_length: int) -> str:
    if max_length <= 0 or len(content) <= max_length:
        return content
    return content[:max_length] + "..."


def format_search_results(
    query: str, answer: str | None, results: list[dict[str, Any]]
) -> str:
    """Render Tavily results as a numbered Markdown list."""
    lines = [f'Résultats pour "{query}":', ""]
    if answer:
        lines.extend([answer, ""])
    for i, result in enumerate(results, 1):
        lines.extend(
            [
                f"{i}. **{result.get('title', '')}**",
                f"   {result.get('url', '')}",
                f"   {result.get('content') or '(pas de description)'}",
            ]
        )
    return "\n".join(lines)


class WebCapability:
    """Web access. Only the configured actions are declared."""

    name = "web"
    description = (
        "Accès au web : recherche d'informations récentes et lecture de pages. "
        "Utilise quand la réponse dépend d'informations que tu n'as pas."
    )

    def __init__(self, config: WebConfig) -> None:
        self._config = config
        actions = []
        if config.search_enabled:
            actions.append(SEARCH_ACTION)
        if config.fetch_enabled:
            actions.append(FETCH_ACTION)
        self.actions = tuple(actions)

    async def execute(self, action: str, input: dict[str, Any]) -> ToolResult:
        if action == "search" and self._config.search_enabled:
            return await self._search(str(input.get("query", "")))
        if action == "fetch" and self._config.fetch_enabled:
            return await self._fetch(str(input.get("url", "")))
        return ToolResult.failure(
            f"Action inconnue : {action}", error=f"Unknown action: {action}"
        )

    async def _search(self, query: str) -> ToolResult:
        if not query.strip():
            return ToolResult.failure("La requête de recherche est vide")

        logger.info("Web search: %s", query)
        try:
            client = AsyncTavilyClient(api_key=self._config.tavily_api_key)
            response = await client.search(
                query=query,
                max_results=self._config.search_max_results,
                include_answer=True,
            )
        except Exception as e:
            logger.warning("Web search error: %s - %s", query, e)
            return ToolResult.failure(
                "Erreur lors de la recherche web", error=f"{type(e).__name__}: {e}"
            )

        results = response.get("results", [])
        if not results:
            return ToolResult.ok(f'Aucun résultat trouvé pour: "{query}"', data=[])

        logger.info("Web search success: %s (%d results)", query, len(results))
        text = format_search_results(query, response.get("answer"), results)
        return ToolResult.ok(
            _truncate(text, self._config.max_content_length),
            data=[
                {"title": r.get("title"), "url": r.get("url"), "content": r.get("content")}
                for r in results
            ],
        )

    async def _fetch(self, url: str) -> ToolResult:
        if not url.startswith(("http://", "https://")):
            return ToolResult.failure(
                "URL invalide : elle doit commencer par http:// ou https://"
            )

        logger.info("Web fetch: %s", url)
        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    f"{self._config.fetch_endpoint}/md",
                    json={"url": url, "f": "llm", "q": None, "c": "0"},
                    timeout=self._config.fetch_timeout_seconds,
                )
                response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException:
            logger.warning("Web fetch timeout: %s", url)
            return ToolResult.failure("Délai dépassé lors de la récupération de la page")
        except httpx.HTTPStatusError as e:
            logger.warning("Web fetch HTTP error: %s - %s", url, e)
            return ToolResult.failure(
                "Impossible de récupérer la page",
                error=f"HTTP {e.response.status_code}",
            )
        except (httpx.RequestError, ValueError) as e:
            logger.warning("Web fetch request error: %s - %s", url, e)
            return ToolResult.failure("Impossible de récupérer la page", error=str(e))

        if not data.get("success", False):
            logger.warning("Web fetch failed (API): %s", url)
            return ToolResult.failure("Impossible de récupérer la page")

        markdown = _truncate(data.get("markdown", ""), self._config.max_content_length)
        logger.info("Web fetch success: %s", url)
        return ToolResult.ok(f"Contenu de {url}:\n\n{markdown}", data={"url": url})
