"""Memory capability: durable facts and semantic recall."""

import logging
from typing import Any

from makilab.domain.entities.capability import ActionSpec
from makilab.domain.entities.tool_result import ToolResult
from makilab.domain.repositories import FactRepository
from makilab.domain.services.protocols import SemanticMemory

logger = logging.getLogger(__name__)


class MemoryCapability:
    """Lets the model read and edit what it knows about the user.

    Search is only declared when a semantic memory is available.
    """

    name = "memory"
    description = (
        "Mémoire long terme. Liste, ajoute ou oublie des faits sur l'utilisateur, "
        "et recherche dans les conversations passées quand tu manques de contexte."
    )

    def __init__(
        self,
        fact_repository: FactRepository,
        semantic_memory: SemanticMemory | None = None,
    ) -> None:
        """Initialize.

        Args:
            fact_repository: Durable fact store.
            semantic_memory: Semantic search, if embeddings are configured.
        """
        self._facts = fact_repository
        self._semantic = semantic_memory

        actions = [
            ActionSpec(name="list_facts", description="Liste tous les faits mémorisés"),
            ActionSpec(
                name="remember",
                description="Mémorise (ou met à jour) un fait sur l'utilisateur",
                input_schema={
                    "type": "object",
                    "properties": {
                        "key": {"type": "string", "description": "Clé en snake_case"},
                        "value": {"type": "string", "description": "Valeur du fait"},
                    },
                    "required": ["key", "value"],
                },
            ),
            ActionSpec(
                name="forget",
                description="Oublie un fait",
                input_schema={
                    "type": "object",
                    "properties": {"key": {"type": "string"}},
                    "required": ["key"],
                },
            ),
        ]
        if semantic_memory is not None:
            actions.append(
                ActionSpec(
                    name="search",
                    description=(
                        "Recherche sémantique dans les conversations passées, "
                        "les faits et les résumés"
                    ),
                    input_schema={
                        "type": "object",
                        "properties": {
                            "query": {"type": "string"},
                            "limit": {
                                "type": "integer",
                                "description": "Nombre maximum de résultats (défaut: 5)",
                            },
                        },
                        "required": ["query"],
                    },
                )
            )
        self.actions = tuple(actions)

    async def execute(self, action: str, input: dict[str, Any]) -> ToolResult:
        try:
            if action == "list_facts":
                return await self._list_facts()
            if action == "remember":
                return await self._remember(input)
            if action == "forget":
                return await self._forget(input)
            if action == "search" and self._semantic is not None:
                return await self._search(self._semantic, input)
        except Exception as e:
            logger.exception("Memory action %s failed", action)
            return ToolResult.failure("Erreur d'accès à la mémoire", error=str(e))

        return ToolResult.failure(
            f"Action inconnue : {action}",
            error=f"Action '{action}' non supportée par le subagent memory",
        )

    async def _list_facts(self) -> ToolResult:
        facts = await self._facts.find_all()
        if not facts:
            return ToolResult.ok("Aucun fait mémorisé.", data={})
        text = "\n".join(f"- {key}: {value}" for key, value in facts.items())
        return ToolResult.ok(text, data=facts)

    async def _remember(self, input: dict[str, Any]) -> ToolResult:
        key = str(input.get("key", "")).strip()
        value = str(input.get("value", "")).strip()
        if not key or not value:
            return ToolResult.failure("La clé et la valeur sont obligatoires")
        await self._facts.set(key, value)
        if self._semantic is not None:
            await self._semantic.index_fact(key, value)
        logger.info("Fact remembered: %s", key)
        return ToolResult.ok(f"Mémorisé : {key} = {value}", data={key: value})

    async def _forget(self, input: dict[str, Any]) -> ToolResult:
        key = str(input.get("key", "")).strip()
        if not await self._facts.delete(key):
            return ToolResult.failure(f"Aucun fait pour la clé : {key}")
        if self._semantic is not None:
            await self._semantic.forget_fact(key)
        logger.info("Fact forgotten: %s", key)
        return ToolResult.ok(f"Oublié : {key}")

    async def _search(
        self, semantic: SemanticMemory, input: dict[str, Any]
    ) -> ToolResult:
        query = str(input.get("query", "")).strip()
        if not query:
            return ToolResult.failure("La requête de recherche est vide")
        limit = input.get("limit") or 5
        hits = await semantic.search(query, limit=int(limit))
        if not hits:
            return ToolResult.ok("Aucun résultat trouvé.", data=[])
        lines = [f"- [{hit.kind}] ({hit.score:.2f}) {hit.content}" for hit in hits]
        return ToolResult.ok(
            "\n".join(lines),
            data=[{"id": h.id, "score": h.score, "kind": h.kind} for h in hits],
        )
