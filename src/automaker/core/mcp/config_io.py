"""Import and export of MCP server configuration JSON."""

from __future__ import annotations

import json
import logging
import shlex
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from pydantic import ValidationError

from automaker.core.errors import McpConfigError
from automaker.core.mcp.models import MCPServerConfig

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class McpImportResult:
    servers: list[MCPServerConfig] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


def export_mcp_servers(servers: Iterable[MCPServerConfig]) -> str:
    """Serialize servers as ``{"mcpServers": [...]}`` keeping ids and every set field."""
    payload = {
        "mcpServers": [
            server.model_dump(by_alias=True, exclude_none=True, mode="json") for server in servers
        ]
    }
    return json.dumps(payload, indent=2)


def import_mcp_servers(
    text: str, existing: Iterable[MCPServerConfig] = ()
) -> McpImportResult:
    """Parse exported or Claude-style MCP JSON into server configs.

    The array form (our export) keeps ids and is taken as-is. The keyed-by-name
    form gets fresh ids; names already in ``existing`` and entries missing
    their transport's required field are skipped.
    """
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        raise McpConfigError(f"Invalid JSON: {exc.msg}") from exc
    if not isinstance(parsed, dict):
        raise McpConfigError("MCP configuration must be a JSON object")

    servers_payload = parsed.get("mcpServers", parsed)
    existing_names = {server.name for server in existing}

    if isinstance(servers_payload, list):
        return _import_array(servers_payload)
    if isinstance(servers_payload, dict):
        return _import_keyed(servers_payload, existing_names)
    raise McpConfigError("mcpServers must be an array or an object")


def _import_array(entries: list[Any]) -> McpImportResult:
    result = McpImportResult()
    for index, entry in enumerate(entries):
        try:
            result.servers.append(MCPServerConfig.model_validate(entry))
        except ValidationError as exc:
            raise McpConfigError(f"Invalid server entry at index {index}: {exc}") from exc
    return result


def _import_keyed(entries: dict[str, Any], existing_names: set[str]) -> McpImportResult:
    result = McpImportResult()
    for name, raw in entries.items():
        if not isinstance(raw, dict):
            result.skipped.append(name)
            continue
        if name in existing_names:
            logger.info("Skipping MCP server %s: name already exists", name)
            result.skipped.append(name)
            continue

        server_type = raw.get("type") or "stdio"
        command = raw.get("command")
        args = raw.get("args")
        if server_type == "stdio":
            if not command:
                result.skipped.append(name)
                continue
            if isinstance(command, str) and " " in command.strip() and not args:
                try:
                    command, *args = shlex.split(command)
                except ValueError as exc:
                    logger.warning("Skipping MCP server %s: unparsable command (%s)", name, exc)
                    result.skipped.append(name)
                    continue
        elif not raw.get("url"):
            result.skipped.append(name)
            continue

        data = {
            **raw,
            "id": uuid4().hex,
            "name": name,
            "type": server_type,
            "command": command,
            "args": args,
        }
        try:
            result.servers.append(MCPServerConfig.model_validate(data))
        except ValidationError:
            logger.warning("Skipping MCP server %s: invalid configuration", name)
            result.skipped.append(name)
    return result


def build_sdk_mcp_servers(servers: Iterable[MCPServerConfig]) -> dict[str, dict[str, Any]]:
    """Convert enabled servers into the name-keyed map agent sessions expect."""
    mapped: dict[str, dict[str, Any]] = {}
    for server in servers:
        if not server.enabled:
            continue
        if server.type == "stdio":
            entry: dict[str, Any] = {
                "type": "stdio",
                "command": server.command,
                "args": list(server.args or []),
            }
            if server.env:
                entry["env"] = dict(server.env)
        else:
            entry = {"type": server.type, "url": server.url}
            if server.headers:
                entry["headers"] = dict(server.headers)
        mapped[server.name] = entry
    return mapped


__all__ = [
    "McpImportResult",
    "build_sdk_mcp_servers",
    "export_mcp_servers",
    "import_mcp_servers",
]
