"""Provider capability contract."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from automaker.core.providers.types import (
        ExecuteOptions,
        InstallationStatus,
        ModelDefinition,
        ProviderMessage,
    )


@runtime_checkable
class Provider(Protocol):
    """A backend able to run streaming agent sessions for some model family.

    New providers implement this protocol and register a routing rule with
    :class:`~automaker.core.providers.router.ProviderRouter`.
    """

    def get_name(self) -> str:
        """Canonical provider name (e.g. ``"claude"``)."""
        ...

    def execute_query(self, options: ExecuteOptions) -> AsyncIterator[ProviderMessage]:
        """Run one session and yield its messages in transport order."""
        ...

    async def detect_installation(self) -> InstallationStatus:
        """Report whether the provider can be used right now."""
        ...

    def get_available_models(self) -> list[ModelDefinition]:
        """Return the static model catalog for this provider."""
        ...

    def supports_feature(self, feature: str) -> bool:
        """Return whether the provider declares the given capability."""
        ...
