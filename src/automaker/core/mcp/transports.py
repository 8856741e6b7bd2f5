"""Transport selection for MCP client connections."""

from __future__ import annotations

import contextlib
import logging
from typing import TYPE_CHECKING, Any

from mcp import StdioServerParameters
from mcp.client.sse import sse_client
from mcp.client.stdio import get_default_environment, stdio_client
from mcp.client.streamable_http import streamablehttp_client

from automaker.core.errors import McpConfigError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable
    from contextlib import AbstractAsyncContextManager

    from automaker.core.mcp.models import MCPServerConfig

    type StreamPair = tuple[Any, Any]
    type TransportOpener = Callable[[MCPServerConfig], AbstractAsyncContextManager[StreamPair]]

logger = logging.getLogger(__name__)


def validate_server_config(config: MCPServerConfig) -> None:
    """Reject configs missing the field their transport requires."""
    match config.type:
        case "sse":
            if not config.url:
                raise McpConfigError("URL is required for SSE transport")
        case "http":
            if not config.url:
                raise McpConfigError("URL is required for HTTP transport")
        case _:
            if not config.command:
                raise McpConfigError("Command is required for stdio transport")


def build_stdio_parameters(config: MCPServerConfig) -> StdioServerParameters:
    """Build child-process parameters; config env is layered over the safe defaults."""
    env = {**get_default_environment(), **(config.env or {})}
    return StdioServerParameters(
        command=config.command or "",
        args=list(config.args or []),
        env=env,
    )


@contextlib.asynccontextmanager
async def open_transport(config: MCPServerConfig) -> AsyncIterator[StreamPair]:
    """Open the transport selected by ``config.type`` and yield ``(read, write)``.

    SSE headers go to both the initial POST endpoint and the event stream
    (including reconnects) because ``sse_client`` applies them to its HTTP
    client as a whole.
    """
    validate_server_config(config)
    headers = dict(config.headers or {})

    match config.type:
        case "sse":
            logger.debug("Opening SSE transport to %s", config.url)
            async with sse_client(config.url or "", headers=headers) as (read, write):
                yield read, write
        case "http":
            logger.debug("Opening streamable HTTP transport to %s", config.url)
            async with streamablehttp_client(config.url or "", headers=headers) as (
                read,
                write,
                _get_session_id,
            ):
                yield read, write
        case _:
            params = build_stdio_parameters(config)
            logger.debug("Spawning stdio server %s %s", params.command, params.args)
            async with stdio_client(params) as (read, write):
                yield read, write


__all__ = ["build_stdio_parameters", "open_transport", "validate_server_config"]
