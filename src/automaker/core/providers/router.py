"""Provider routing: model identifiers and provider names to Provider instances."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from automaker.core.providers.claude import ClaudeProvider

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from automaker.core.providers.base import Provider
    from automaker.core.providers.types import InstallationStatus, ModelDefinition

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ProviderRegistration:
    """Routing rule for one provider family."""

    name: str
    factory: Callable[[], Provider]
    aliases: frozenset[str] = field(default_factory=frozenset)
    model_prefixes: tuple[str, ...] = ()
    model_aliases: frozenset[str] = field(default_factory=frozenset)

    def matches_model(self, model_id: str) -> bool:
        """Check a case-folded model identifier against this rule."""
        if model_id in self.model_aliases:
            return True
        return any(model_id.startswith(prefix) for prefix in self.model_prefixes)

    def matches_name(self, name: str) -> bool:
        return name == self.name or name in self.aliases


CLAUDE_REGISTRATION = ProviderRegistration(
    name="claude",
    factory=ClaudeProvider,
    aliases=frozenset({"anthropic"}),
    model_prefixes=("claude-",),
    model_aliases=frozenset({"haiku", "sonnet", "opus"}),
)

DEFAULT_REGISTRATIONS: tuple[ProviderRegistration, ...] = (CLAUDE_REGISTRATION,)


class ProviderRouter:
    """Stateless lookup from model ids or provider names to fresh providers.

    Registrations are checked in order, so earlier rules win when prefixes
    overlap. Every lookup builds a new provider instance.
    """

    def __init__(
        self,
        registrations: Sequence[ProviderRegistration] = DEFAULT_REGISTRATIONS,
        *,
        default_provider: str = "claude",
    ) -> None:
        if not registrations:
            raise ValueError("At least one provider registration is required")
        self._registrations = tuple(registrations)
        default = self._find_by_name(default_provider.casefold())
        if default is None:
            raise ValueError(f"Default provider {default_provider!r} is not registered")
        self._default = default

    def _find_by_name(self, name: str) -> ProviderRegistration | None:
        for registration in self._registrations:
            if registration.matches_name(name):
                return registration
        return None

    def route_by_model(self, model_id: str) -> Provider:
        """Return a provider for ``model_id``, falling back to the default.

        Never raises for unknown identifiers; the fallback is logged once.
        """
        normalized = model_id.casefold()
        for registration in self._registrations:
            if registration.matches_model(normalized):
                return registration.factory()

        logger.warning(
            "Unknown model %r, defaulting to %s provider", model_id, self._default.name
        )
        return self._default.factory()

    def route_by_name(self, name: str) -> Provider | None:
        """Return a provider by canonical name or alias, or ``None`` if unknown."""
        registration = self._find_by_name(name.casefold())
        if registration is None:
            return None
        return registration.factory()

    def list_all_providers(self) -> list[Provider]:
        return [registration.factory() for registration in self._registrations]

    async def check_all_installations(self) -> dict[str, InstallationStatus]:
        """Report installation status keyed by provider name."""
        statuses: dict[str, InstallationStatus] = {}
        for provider in self.list_all_providers():
            statuses[provider.get_name()] = await provider.detect_installation()
        return statuses

    def list_all_models(self) -> list[ModelDefinition]:
        models: list[ModelDefinition] = []
        for provider in self.list_all_providers():
            models.extend(provider.get_available_models())
        return models


__all__ = [
    "CLAUDE_REGISTRATION",
    "DEFAULT_REGISTRATIONS",
    "ProviderRegistration",
    "ProviderRouter",
]
