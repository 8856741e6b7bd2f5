"""AI provider contract, routing and the Claude executor."""

from __future__ import annotations

from automaker.core.providers.base import Provider
from automaker.core.providers.claude import ClaudeProvider
from automaker.core.providers.permission_policy import (
    DEFAULT_ALLOWED_TOOLS,
    PermissionMode,
    resolve_session_permissions,
)
from automaker.core.providers.router import ProviderRegistration, ProviderRouter
from automaker.core.providers.types import (
    ExecuteOptions,
    InstallationStatus,
    ModelDefinition,
    ProviderMessage,
)

__all__ = [
    "DEFAULT_ALLOWED_TOOLS",
    "ClaudeProvider",
    "ExecuteOptions",
    "InstallationStatus",
    "ModelDefinition",
    "PermissionMode",
    "Provider",
    "ProviderMessage",
    "ProviderRegistration",
    "ProviderRouter",
    "resolve_session_permissions",
]
