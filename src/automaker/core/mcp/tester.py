"""One-off MCP server connection tests.

Each test opens a single transport, initializes a client session, lists the
server's tools and tears everything down again. Nothing is cached between
calls; the result is a pure function of the supplied config and the server's
behaviour.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from contextlib import AsyncExitStack
from typing import TYPE_CHECKING, Any

from mcp import ClientSession

from automaker.core.errors import McpConfigError, get_error_message
from automaker.core.limits import MCP_TEST_TIMEOUT_MS
from automaker.core.mcp.models import MCPServerInfo, MCPTestResult, MCPToolInfo
from automaker.core.mcp.transports import open_transport, validate_server_config

if TYPE_CHECKING:
    from collections.abc import Callable

    from automaker.core.mcp.models import MCPServerConfig
    from automaker.core.mcp.transports import TransportOpener
    from automaker.core.services.settings import SettingsService

logger = logging.getLogger(__name__)

CONNECTION_TIMEOUT_MESSAGE = "Connection timeout"
LIST_TOOLS_TIMEOUT_MESSAGE = "List tools timeout"


class MCPTestService:
    """Tests connectivity to MCP servers and reports the tools they expose."""

    def __init__(
        self,
        settings_service: SettingsService | None = None,
        *,
        timeout_ms: int = MCP_TEST_TIMEOUT_MS,
        transport_opener: TransportOpener = open_transport,
        session_factory: Callable[[Any, Any], Any] = ClientSession,
    ) -> None:
        self._settings_service = settings_service
        self._timeout = timeout_ms / 1000
        self._transport_opener = transport_opener
        self._session_factory = session_factory

    async def test_server(self, config: MCPServerConfig) -> MCPTestResult:
        """Connect to ``config``, list its tools and return the outcome."""
        started = time.monotonic()

        def _elapsed_ms() -> int:
            return int((time.monotonic() - started) * 1000)

        def _failure(message: str) -> MCPTestResult:
            return MCPTestResult(success=False, error=message, connection_time=_elapsed_ms())

        try:
            validate_server_config(config)
        except McpConfigError as exc:
            return _failure(str(exc))

        stack = AsyncExitStack()
        try:
            try:
                async with asyncio.timeout(self._timeout):
                    read, write = await stack.enter_async_context(self._transport_opener(config))
                    session = await stack.enter_async_context(self._session_factory(read, write))
                    init_result = await session.initialize()
            except TimeoutError:
                logger.info("MCP server %s timed out while connecting", config.name)
                return _failure(CONNECTION_TIMEOUT_MESSAGE)

            try:
                async with asyncio.timeout(self._timeout):
                    tools_result = await session.list_tools()
            except TimeoutError:
                logger.info("MCP server %s timed out while listing tools", config.name)
                return _failure(LIST_TOOLS_TIMEOUT_MESSAGE)

            tools = [
                MCPToolInfo(
                    name=tool.name,
                    description=getattr(tool, "description", None),
                    input_schema=getattr(tool, "inputSchema", None),
                    enabled=True,
                )
                for tool in tools_result.tools
            ]
            return MCPTestResult(
                success=True,
                tools=tools,
                connection_time=_elapsed_ms(),
                server_info=_server_info(init_result, config),
            )
        except Exception as exc:
            logger.warning("MCP test for %s failed: %s", config.name, exc)
            return _failure(get_error_message(exc))
        finally:
            await _close_quietly(stack)

    async def test_server_by_id(self, server_id: str) -> MCPTestResult:
        """Look a server up in the global settings and test it."""
        if self._settings_service is None:
            return MCPTestResult(success=False, error="Settings service is not configured")
        try:
            settings = await self._settings_service.get_global_settings()
        except Exception as exc:
            logger.exception("Failed to load settings for MCP test")
            return MCPTestResult(success=False, error=get_error_message(exc))

        config = next((server for server in settings.mcp_servers if server.id == server_id), None)
        if config is None:
            return MCPTestResult(success=False, error=f'Server with ID "{server_id}" not found')
        return await self.test_server(config)


def _server_info(init_result: object, config: MCPServerConfig) -> MCPServerInfo:
    info = getattr(init_result, "serverInfo", None)
    return MCPServerInfo(
        name=getattr(info, "name", None) or config.name,
        version=getattr(info, "version", None),
    )


async def _close_quietly(stack: AsyncExitStack) -> None:
    # Teardown errors must never replace the test outcome.
    with contextlib.suppress(Exception):
        await stack.aclose()


__all__ = [
    "CONNECTION_TIMEOUT_MESSAGE",
    "LIST_TOOLS_TIMEOUT_MESSAGE",
    "MCPTestService",
]
