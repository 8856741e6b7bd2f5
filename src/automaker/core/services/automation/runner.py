"""FeatureRunner: one agent invocation per feature."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from automaker.core.agents.prompt_builders import build_feature_prompt
from automaker.core.errors import ProviderExecutionError, get_error_message
from automaker.core.events import AutoModeEventType
from automaker.core.limits import MAX_EVENT_TEXT_LENGTH
from automaker.core.mcp.config_io import build_sdk_mcp_servers
from automaker.core.providers.types import (
    AssistantMessage,
    ErrorMessage,
    ExecuteOptions,
    ResultMessage,
    TextBlock,
    ToolUseBlock,
)
from automaker.core.services.features import FeatureStatus
from automaker.core.services.settings import GlobalSettings
from automaker.core.utils import truncate_text

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from automaker.core.cancellation import CancellationToken
    from automaker.core.config import AutomakerConfig
    from automaker.core.providers.base import Provider
    from automaker.core.providers.router import ProviderRouter
    from automaker.core.services.automation.state import AutoLoopState
    from automaker.core.services.features import Feature, FeatureStore
    from automaker.core.services.settings import SettingsService

    type EmitFn = Callable[..., None]

log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


class FeatureOutcome(StrEnum):
    VERIFIED = "verified"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class FeatureRunResult:
    outcome: FeatureOutcome
    summary: str | None = None
    error: str | None = None
    session_id: str | None = None


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------


class FeatureRunner:
    """Run a single feature through the routed provider and record the outcome."""

    def __init__(
        self,
        *,
        feature_store: FeatureStore,
        router: ProviderRouter,
        config: AutomakerConfig,
        settings_service: SettingsService | None = None,
    ) -> None:
        self._features = feature_store
        self._router = router
        self._config = config
        self._settings = settings_service

    async def _load_settings(self) -> GlobalSettings:
        if self._settings is None:
            return GlobalSettings()
        return await self._settings.get_global_settings()

    def build_options(
        self,
        feature: Feature,
        state: AutoLoopState,
        settings: GlobalSettings,
        *,
        cancel_token: CancellationToken,
    ) -> ExecuteOptions:
        general = self._config.general
        setting_sources = tuple(self._config.auto_mode.setting_sources)
        return ExecuteOptions(
            prompt=build_feature_prompt(feature, state.project_path),
            model=feature.model or general.default_model,
            cwd=str(state.project_path),
            system_prompt=general.system_prompt,
            max_turns=general.max_turns,
            cancel_token=cancel_token,
            mcp_servers=build_sdk_mcp_servers(settings.mcp_servers) or None,
            mcp_auto_approve_tools=settings.mcp_auto_approve_tools,
            mcp_unrestricted_tools=settings.mcp_unrestricted_tools,
            setting_sources=setting_sources or None,
        )

    async def run(self, feature: Feature, state: AutoLoopState, emit: EmitFn) -> FeatureRunResult:
        """Execute ``feature`` and persist its resulting status.

        Success marks the feature verified, any provider failure marks it
        failed, and cancellation puts it back to pending.
        """
        project_path = state.project_path
        token = state.cancel_token.child()
        try:
            settings = await self._load_settings()
            options = self.build_options(feature, state, settings, cancel_token=token)
            provider = self._router.route_by_model(options.model)

            await self._features.update_status(project_path, feature.id, FeatureStatus.IN_PROGRESS)
            state.active_invocations += 1
            try:
                result = await self._execute(provider, options, feature, emit)
            finally:
                state.active_invocations -= 1
        except asyncio.CancelledError:
            await self._features.update_status(project_path, feature.id, FeatureStatus.PENDING)
            raise
        except Exception as exc:
            log.warning("Feature %s failed: %s", feature.id, exc)
            result = FeatureRunResult(FeatureOutcome.FAILED, error=get_error_message(exc))
        finally:
            state.cancel_token.release(token)

        await self._record(project_path, feature, result)
        return result

    async def _execute(
        self,
        provider: Provider,
        options: ExecuteOptions,
        feature: Feature,
        emit: EmitFn,
    ) -> FeatureRunResult:
        result: ResultMessage | None = None
        async for message in provider.execute_query(options):
            match message:
                case ErrorMessage(error=error):
                    raise ProviderExecutionError(error, provider=provider.get_name())
                case AssistantMessage():
                    self._publish_blocks(message, feature, emit)
                case ResultMessage():
                    result = message

        if result is not None:
            if result.is_success:
                return FeatureRunResult(
                    FeatureOutcome.VERIFIED, summary=result.result, session_id=result.session_id
                )
            raise ProviderExecutionError(
                result.result or "Agent session ended with an error result",
                provider=provider.get_name(),
                session_id=result.session_id,
            )
        if options.cancel_token is not None and options.cancel_token.is_cancelled:
            return FeatureRunResult(FeatureOutcome.CANCELLED)
        raise ProviderExecutionError(
            "Agent session ended without a result", provider=provider.get_name()
        )

    def _publish_blocks(self, message: AssistantMessage, feature: Feature, emit: EmitFn) -> None:
        for block in message.message.content:
            match block:
                case TextBlock(text=text) if text.strip():
                    emit(
                        AutoModeEventType.PROGRESS,
                        truncate_text(text, max_chars=MAX_EVENT_TEXT_LENGTH),
                        featureId=feature.id,
                    )
                case ToolUseBlock(name=name, input=tool_input):
                    emit(
                        AutoModeEventType.TOOL,
                        f"Using tool: {name}",
                        featureId=feature.id,
                        tool=name,
                        input=tool_input,
                    )

    async def _record(self, project_path: Path, feature: Feature, result: FeatureRunResult) -> None:
        match result.outcome:
            case FeatureOutcome.VERIFIED:
                await self._features.update_status(
                    project_path, feature.id, FeatureStatus.VERIFIED, summary=result.summary
                )
            case FeatureOutcome.FAILED:
                await self._features.update_status(
                    project_path, feature.id, FeatureStatus.FAILED, error=result.error
                )
            case FeatureOutcome.CANCELLED:
                await self._features.update_status(project_path, feature.id, FeatureStatus.PENDING)


__all__ = ["FeatureOutcome", "FeatureRunResult", "FeatureRunner"]
