"""External tool bridge over stdio MCP servers."""

import asyncio
import logging
import os
from collections.abc import Mapping
from contextlib import AsyncExitStack
from dataclasses import dataclass, field
from typing import Any

from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client

from makilab.config.models import BridgeServerConfig
from makilab.domain.entities.qualified_name import BRIDGE_SEPARATOR
from makilab.domain.services.protocols import BridgeCallResult, BridgeServer, BridgeTool

logger = logging.getLogger(__name__)

CALL_TIMEOUT_SECONDS = 60.0


@dataclass
class _Connection:
    server_id: str
    session: ClientSession
    stack: AsyncExitStack
    tools: list[BridgeTool] = field(default_factory=list)
    connected: bool = True


class MCPBridge:
    """Connects to configured MCP servers and proxies their tools.

    Connections are opened by connect() and torn down by close(), both
    from the task that owns the bridge.
    """

    def __init__(
        self,
        servers: Mapping[str, BridgeServerConfig],
        call_timeout: float = CALL_TIMEOUT_SECONDS,
    ) -> None:
        """Initialize.

        Args:
            servers: Server id to stdio server settings.
            call_timeout: Timeout of a single tool call in seconds.
        """
        self._servers = dict(servers)
        self._call_timeout = call_timeout
        self._connections: dict[str, _Connection] = {}

    async def connect(self) -> None:
        """Connect to every enabled server.

        A server that fails to start or to list its tools is skipped, and
        so is a server whose id is empty or contains the bridge separator.
        """
        enabled: dict[str, BridgeServerConfig] = {}
        for server_id, config in self._servers.items():
            if not config.enabled:
                continue
            if not server_id or BRIDGE_SEPARATOR in server_id:
                logger.error(
                    "Invalid bridge server id %r (must be non-empty and free of %r), "
                    "skipping",
                    server_id,
                    BRIDGE_SEPARATOR,
                )
                continue
            enabled[server_id] = config
        if not enabled:
            logger.info("No enabled bridge servers, bridge inactive")
            return

        for server_id, config in enabled.items():
            try:
                connection = await self._connect_server(server_id, config)
            except Exception as e:
                logger.warning(
                    "Bridge server %s connection failed, skipping: %s", server_id, e
                )
                continue
            self._connections[server_id] = connection
            logger.info(
                "Bridge server connected: %s (%d tools)",
                server_id,
                len(connection.tools),
            )

        total = sum(len(c.tools) for c in self._connections.values())
        logger.info(
            "Bridge initialized: %d server(s), %d tool(s)", len(self._connections), total
        )

    async def _connect_server(
        self, server_id: str, config: BridgeServerConfig
    ) -> _Connection:
        params = StdioServerParameters(
            command=config.command,
            args=list(config.args),
            env={**os.environ, **config.env},
        )
        stack = AsyncExitStack()
        try:
            read, write = await stack.enter_async_context(stdio_client(params))
            session = await stack.enter_async_context(ClientSession(read, write))
            await session.initialize()
            tools = await self._list_tools(session)
        except BaseException:
            await stack.aclose()
            raise
        return _Connection(server_id=server_id, session=session, stack=stack, tools=tools)

    async def _list_tools(self, session: ClientSession) -> list[BridgeTool]:
        tools: list[BridgeTool] = []
        cursor: str | None = None
        while True:
            result = await session.list_tools(cursor=cursor)
            for tool in result.tools:
                tools.append(
                    BridgeTool(
                        id=tool.name,
                        description=tool.description or tool.name,
                        input_schema=dict(tool.inputSchema or {"type": "object"}),
                    )
                )
            cursor = result.nextCursor
            if not cursor:
                return tools

    def list_connected_servers(self) -> list[BridgeServer]:
        return [
            BridgeServer(id=c.server_id, tools=list(c.tools))
            for c in self._connections.values()
            if c.connected
        ]

    def is_connected(self, server_id: str) -> bool:
        connection = self._connections.get(server_id)
        return connection is not None and connection.connected

    async def call_tool(
        self, server_id: str, tool_id: str, input: dict[str, Any]
    ) -> BridgeCallResult:
        """Call a tool on a connected server.

        Never raises; failures are reported in the result.

        Args:
            server_id: Server id.
            tool_id: Tool name on that server.
            input: Tool arguments.

        Returns:
            Joined text content and success flag.
        """
        connection = self._connections.get(server_id)
        if connection is None or not connection.connected:
            return BridgeCallResult(
                success=False, text=f'MCP server "{server_id}" not connected'
            )

        try:
            result = await asyncio.wait_for(
                connection.session.call_tool(tool_id, arguments=input),
                timeout=self._call_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Bridge call timed out: %s/%s", server_id, tool_id)
            return BridgeCallResult(
                success=False,
                text=f"MCP tool call timed out after {self._call_timeout:.0f}s",
            )
        except Exception as e:
            logger.warning("Bridge call failed: %s/%s: %s", server_id, tool_id, e)
            return BridgeCallResult(success=False, text=f"MCP tool call failed: {e}")

        texts = [
            block.text
            for block in result.content
            if getattr(block, "type", None) == "text" and isinstance(block.text, str)
        ]
        return BridgeCallResult(
            success=not bool(result.isError),
            text="\n".join(texts) or "(no output)",
        )

    async def close(self) -> None:
        """Close every server session."""
        for connection in list(self._connections.values()):
            connection.connected = False
            try:
                await connection.stack.aclose()
            except Exception:
                logger.exception("Error closing bridge server %s", connection.server_id)
        self._connections.clear()
