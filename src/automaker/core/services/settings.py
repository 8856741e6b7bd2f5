"""Global settings collaborator: MCP servers and permission flags."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from automaker.core.mcp.models import MCPServerConfig
from automaker.core.paths import get_settings_path

if TYPE_CHECKING:
    from pathlib import Path

log = logging.getLogger(__name__)


class GlobalSettings(BaseModel):
    """Settings owned by the settings surface and consumed read-only here."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    mcp_servers: list[MCPServerConfig] = Field(default_factory=list)
    mcp_auto_approve_tools: bool | None = None
    mcp_unrestricted_tools: bool | None = None

    def get_server(self, server_id: str) -> MCPServerConfig | None:
        return next((server for server in self.mcp_servers if server.id == server_id), None)


class SettingsService(Protocol):
    async def get_global_settings(self) -> GlobalSettings: ...


class StaticSettingsService:
    """Serve a fixed settings value (CLI overrides and tests)."""

    def __init__(self, settings: GlobalSettings | None = None) -> None:
        self._settings = settings or GlobalSettings()

    async def get_global_settings(self) -> GlobalSettings:
        return self._settings


class FileSettingsService:
    """Read settings from the JSON file shared with the settings surface.

    Re-reads on every call so edits made elsewhere are picked up. A missing
    file yields defaults; a malformed file is logged and also yields defaults.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or get_settings_path()

    @property
    def path(self) -> Path:
        return self._path

    async def get_global_settings(self) -> GlobalSettings:
        import aiofiles

        if not self._path.exists():
            return GlobalSettings()
        async with aiofiles.open(self._path, encoding="utf-8") as f:
            content = await f.read()
        try:
            return GlobalSettings.model_validate(json.loads(content))
        except (json.JSONDecodeError, ValidationError) as exc:
            log.warning("Ignoring unreadable settings file %s: %s", self._path, exc)
            return GlobalSettings()


# ---------------------------------------------------------------------------
# MCP server entry helpers (return new values; nothing is persisted here)
# ---------------------------------------------------------------------------


def add_mcp_server(settings: GlobalSettings, server: MCPServerConfig) -> GlobalSettings:
    if settings.get_server(server.id) is not None:
        raise ValueError(f'Server with ID "{server.id}" already exists')
    return settings.model_copy(update={"mcp_servers": [*settings.mcp_servers, server]})


def update_mcp_server(
    settings: GlobalSettings, server_id: str, **changes: object
) -> GlobalSettings:
    """Return settings with one server's fields replaced by ``changes``."""
    current = settings.get_server(server_id)
    if current is None:
        raise KeyError(server_id)
    updated = MCPServerConfig.model_validate(
        {**current.model_dump(), **changes, "id": server_id}
    )
    servers = [updated if s.id == server_id else s for s in settings.mcp_servers]
    return settings.model_copy(update={"mcp_servers": servers})


def remove_mcp_server(settings: GlobalSettings, server_id: str) -> GlobalSettings:
    servers = [s for s in settings.mcp_servers if s.id != server_id]
    return settings.model_copy(update={"mcp_servers": servers})


__all__ = [
    "FileSettingsService",
    "GlobalSettings",
    "SettingsService",
    "StaticSettingsService",
    "add_mcp_server",
    "remove_mcp_server",
    "update_mcp_server",
]
