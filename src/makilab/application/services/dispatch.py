"""Dispatch of model-issued tool calls."""

import logging
from collections.abc import Iterable
from typing import Any

from makilab.domain.entities.capability import LegacyTool
from makilab.domain.entities.llm import ToolSpec
from makilab.domain.entities.qualified_name import QualifiedName, ToolKind
from makilab.domain.entities.tool_result import ToolResult
from makilab.domain.services.capability_registry import CapabilityRegistry
from makilab.domain.services.protocols import ExternalBridge

logger = logging.getLogger(__name__)


class DispatchResolver:
    """Routes a qualified tool name to its executor.

    Resolution order is bridge prefix, then capability separator, then
    legacy tool name. Every call produces exactly one ToolResult; nothing
    raised by an executor escapes.
    """

    def __init__(
        self,
        registry: CapabilityRegistry,
        legacy_tools: Iterable[LegacyTool] = (),
        bridge: ExternalBridge | None = None,
    ) -> None:
        """Initialize.

        Args:
            registry: Registered capabilities.
            legacy_tools: Flat tools addressed by their bare name.
            bridge: External tool bridge, if any.
        """
        self._registry = registry
        self._legacy_tools = {tool.name: tool for tool in legacy_tools}
        self._bridge = bridge

    @property
    def registry(self) -> CapabilityRegistry:
        return self._registry

    def tool_specs(self) -> list[ToolSpec]:
        """Flatten the callable surface into one tool list.

        Capability actions come first, then legacy tools, then the tools of
        every connected bridge server.

        Returns:
            Tool declarations for the model.
        """
        specs: list[ToolSpec] = []
        for capability in self._registry:
            for action in capability.actions:
                specs.append(
                    ToolSpec(
                        name=QualifiedName.for_capability(capability.name, action.name).raw,
                        description=f"[{capability.name}] {action.description}",
                        input_schema=action.input_schema,
                    )
                )
        for tool in self._legacy_tools.values():
            specs.append(
                ToolSpec(
                    name=tool.name,
                    description=tool.description,
                    input_schema=tool.input_schema,
                )
            )
        if self._bridge is not None:
            for server in self._bridge.list_connected_servers():
                for bridge_tool in server.tools:
                    specs.append(
                        ToolSpec(
                            name=QualifiedName.for_bridge(server.id, bridge_tool.id).raw,
                            description=f"[MCP:{server.id}] {bridge_tool.description}",
                            input_schema=bridge_tool.input_schema,
                        )
                    )
        return specs

    async def resolve(self, name: str, input: Any) -> ToolResult:
        """Execute a model-issued tool call.

        Args:
            name: Qualified tool name.
            input: Decoded tool arguments (non-objects are treated as empty).

        Returns:
            The uniform tool result.
        """
        arguments = input if isinstance(input, dict) else {}
        qualified = QualifiedName.parse(name)
        logger.info("Tool call: %s (%s)", name, qualified.kind.value)

        if qualified.kind == ToolKind.BRIDGE:
            return await self._resolve_bridge(qualified, arguments)
        if qualified.kind == ToolKind.CAPABILITY:
            return await self.resolve_capability(
                qualified.namespace, qualified.name, arguments
            )
        return await self._resolve_legacy(qualified.name, arguments)

    async def resolve_capability(
        self, capability_name: str, action: str, input: dict[str, Any]
    ) -> ToolResult:
        """Execute a capability action.

        The action name is checked against the capability's declared
        actions before execute() is called.

        Args:
            capability_name: Capability name.
            action: Action name.
            input: Action input.

        Returns:
            The capability's result, or a failure result.
        """
        capability = self._registry.get(capability_name)
        if capability is None:
            return ToolResult.failure(
                f'Erreur : subagent "{capability_name}" introuvable',
                error=f"Unknown capability: {capability_name}",
            )

        if action not in {spec.name for spec in capability.actions}:
            return ToolResult.failure(
                f'Erreur : action "{action}" inconnue pour le subagent "{capability_name}"',
                error=f"Unknown action: {capability_name}.{action}",
            )

        try:
            result = await capability.execute(action, input)
        except Exception as e:
            logger.warning(
                "Capability %s/%s raised: %s", capability_name, action, e, exc_info=True
            )
            return ToolResult.failure(
                f"Erreur lors de l'exécution de {capability_name}/{action}: {e}",
                error=str(e),
            )

        if not result.success:
            logger.info(
                "Capability %s/%s failed: %s", capability_name, action, result.error
            )
        return result

    async def _resolve_legacy(self, name: str, input: dict[str, Any]) -> ToolResult:
        tool = self._legacy_tools.get(name)
        if tool is None:
            return ToolResult.failure(
                f'Erreur : outil "{name}" introuvable', error=f"Unknown tool: {name}"
            )
        try:
            text = await tool.execute(input)
        except Exception as e:
            logger.warning("Tool %s raised: %s", name, e, exc_info=True)
            return ToolResult.failure(
                f"Erreur lors de l'exécution de {name}: {e}", error=str(e)
            )
        return ToolResult.ok(text)

    async def _resolve_bridge(
        self, qualified: QualifiedName, input: dict[str, Any]
    ) -> ToolResult:
        server_id = qualified.namespace
        if not server_id:
            return ToolResult.failure(
                f"Invalid MCP tool name: {qualified.raw}",
                error=f"Invalid MCP tool name: {qualified.raw}",
            )
        if self._bridge is None or not self._bridge.is_connected(server_id):
            return ToolResult.failure(
                f'MCP server "{server_id}" not connected',
                error=f"Bridge server not connected: {server_id}",
            )
        try:
            outcome = await self._bridge.call_tool(server_id, qualified.name, input)
        except Exception as e:
            logger.warning("Bridge call %s raised: %s", qualified.raw, e)
            return ToolResult.failure(f"MCP tool call failed: {e}", error=str(e))

        if outcome.success:
            return ToolResult.ok(outcome.text)
        return ToolResult.failure(outcome.text)
