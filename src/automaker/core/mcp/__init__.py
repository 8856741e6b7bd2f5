"""MCP server configuration, import/export and connection testing."""

from __future__ import annotations

from automaker.core.mcp.config_io import (
    McpImportResult,
    build_sdk_mcp_servers,
    export_mcp_servers,
    import_mcp_servers,
)
from automaker.core.mcp.models import MCPServerConfig, MCPServerInfo, MCPTestResult, MCPToolInfo
from automaker.core.mcp.tester import MCPTestService

__all__ = [
    "MCPServerConfig",
    "MCPServerInfo",
    "MCPTestResult",
    "MCPTestService",
    "MCPToolInfo",
    "McpImportResult",
    "build_sdk_mcp_servers",
    "export_mcp_servers",
    "import_mcp_servers",
]
