"""MCP server configuration and connection-test result models."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

MCPTransportType = Literal["stdio", "sse", "http"]


class _CamelModel(BaseModel):
    """Models shared with the settings surface use camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MCPServerConfig(_CamelModel):
    """A tool server registered by the settings surface.

    ``command``/``args``/``env`` apply to stdio servers, ``url``/``headers`` to
    sse and http servers. Core components treat instances as read-only.
    """

    id: str
    name: str
    description: str | None = None
    type: MCPTransportType = "stdio"
    enabled: bool = True
    command: str | None = None
    args: list[str] | None = None
    env: dict[str, str] | None = None
    url: str | None = None
    headers: dict[str, str] | None = None


class MCPToolInfo(_CamelModel):
    name: str
    description: str | None = None
    input_schema: dict[str, Any] | None = None
    enabled: bool = True


class MCPServerInfo(_CamelModel):
    name: str | None = None
    version: str | None = None


class MCPTestResult(_CamelModel):
    """Outcome of a single connection test."""

    success: bool
    tools: list[MCPToolInfo] | None = None
    error: str | None = None
    connection_time: int = Field(default=0, description="Elapsed wall-clock milliseconds")
    server_info: MCPServerInfo | None = None


__all__ = [
    "MCPServerConfig",
    "MCPServerInfo",
    "MCPTestResult",
    "MCPToolInfo",
    "MCPTransportType",
]
