"""Permission and tool-access policy for agent sessions.

MCP servers change what a session is allowed to do: with servers present the
session defaults to unattended operation (bypass prompts, unrestricted tools).
Users opt out upstream, through the security warning shown when a server is
added, by setting the auto-approve / unrestricted flags to false.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

DEFAULT_ALLOWED_TOOLS: tuple[str, ...] = (
    "Read",
    "Write",
    "Edit",
    "Glob",
    "Grep",
    "Bash",
    "WebSearch",
    "WebFetch",
)


class PermissionMode(StrEnum):
    """Permission modes understood by the agent session transport."""

    DEFAULT = "default"
    BYPASS = "bypassPermissions"


@dataclass(frozen=True, slots=True)
class SessionPermissions:
    """Resolved tool and permission settings for a single session."""

    has_mcp_servers: bool
    bypass_permissions: bool
    restrict_tools: bool
    allowed_tools: tuple[str, ...] | None

    @property
    def permission_mode(self) -> PermissionMode:
        return PermissionMode.BYPASS if self.bypass_permissions else PermissionMode.DEFAULT

    @property
    def allow_dangerously_skip_permissions(self) -> bool:
        # The transport refuses bypass mode unless this flag rides along.
        return self.bypass_permissions


def resolve_session_permissions(
    *,
    mcp_servers: Mapping[str, Any] | None,
    allowed_tools: Sequence[str] | None,
    mcp_auto_approve_tools: bool | None,
    mcp_unrestricted_tools: bool | None,
) -> SessionPermissions:
    """Resolve the permission mode and allow-list for a session.

    Returns an ``allowed_tools`` of ``None`` when tools are unrestricted, in
    which case no allow-list is sent and the session has full tool access.
    """
    has_mcp_servers = bool(mcp_servers)
    auto_approve = True if mcp_auto_approve_tools is None else mcp_auto_approve_tools
    unrestricted = True if mcp_unrestricted_tools is None else mcp_unrestricted_tools

    bypass_permissions = has_mcp_servers and auto_approve
    restrict_tools = not has_mcp_servers or not unrestricted

    effective_tools: tuple[str, ...] | None = None
    if restrict_tools:
        effective_tools = tuple(allowed_tools) if allowed_tools is not None else DEFAULT_ALLOWED_TOOLS

    return SessionPermissions(
        has_mcp_servers=has_mcp_servers,
        bypass_permissions=bypass_permissions,
        restrict_tools=restrict_tools,
        allowed_tools=effective_tools,
    )


__all__ = [
    "DEFAULT_ALLOWED_TOOLS",
    "PermissionMode",
    "SessionPermissions",
    "resolve_session_permissions",
]
