"""Claude provider: executes queries through the Claude Agent SDK."""

from __future__ import annotations

import logging
import os
from importlib.metadata import PackageNotFoundError, version
from typing import TYPE_CHECKING, Any

import claude_agent_sdk
from claude_agent_sdk import ClaudeAgentOptions

from automaker.core.providers.permission_policy import resolve_session_permissions
from automaker.core.providers.streaming import stream_until_cancelled
from automaker.core.providers.types import (
    AssistantMessage,
    ContentBlock,
    InstallationStatus,
    MessageBody,
    ModelDefinition,
    ProviderMessage,
    ResultMessage,
    TextBlock,
    ThinkingBlock,
    ToolResultBlock,
    ToolUseBlock,
    UserMessage,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterable, AsyncIterator, Callable

    from automaker.core.providers.types import ExecuteOptions, Prompt

    type QueryFn = Callable[..., AsyncIterable[Any]]

logger = logging.getLogger(__name__)

API_KEY_ENV = "ANTHROPIC_API_KEY"
SUPPORTED_FEATURES = frozenset({"tools", "text", "vision", "thinking"})

CLAUDE_MODELS: tuple[ModelDefinition, ...] = (
    ModelDefinition(
        id="claude-opus-4-5-20251101",
        name="Claude Opus 4.5",
        model_string="claude-opus-4-5-20251101",
        provider="anthropic",
        description="Most capable Claude model",
        context_window=200_000,
        max_output_tokens=16_000,
        supports_vision=True,
        supports_tools=True,
        tier="premium",
        default=True,
    ),
    ModelDefinition(
        id="claude-sonnet-4-20250514",
        name="Claude Sonnet 4",
        model_string="claude-sonnet-4-20250514",
        provider="anthropic",
        description="Balanced performance and cost",
        context_window=200_000,
        max_output_tokens=16_000,
        supports_vision=True,
        supports_tools=True,
        tier="standard",
    ),
    ModelDefinition(
        id="claude-3-5-sonnet-20241022",
        name="Claude 3.5 Sonnet",
        model_string="claude-3-5-sonnet-20241022",
        provider="anthropic",
        description="Fast and capable",
        context_window=200_000,
        max_output_tokens=8_000,
        supports_vision=True,
        supports_tools=True,
        tier="standard",
    ),
    ModelDefinition(
        id="claude-haiku-4-5-20251001",
        name="Claude Haiku 4.5",
        model_string="claude-haiku-4-5-20251001",
        provider="anthropic",
        description="Fastest Claude model",
        context_window=200_000,
        max_output_tokens=8_000,
        supports_vision=True,
        supports_tools=True,
        tier="basic",
    ),
)


def build_sdk_option_kwargs(options: ExecuteOptions) -> dict[str, Any]:
    """Translate ``ExecuteOptions`` into ``ClaudeAgentOptions`` keyword arguments.

    Keys are only present when they carry a decision; in particular a missing
    ``allowed_tools`` key means the session gets full tool access.
    """
    permissions = resolve_session_permissions(
        mcp_servers=options.mcp_servers,
        allowed_tools=options.allowed_tools,
        mcp_auto_approve_tools=options.mcp_auto_approve_tools,
        mcp_unrestricted_tools=options.mcp_unrestricted_tools,
    )

    kwargs: dict[str, Any] = {
        "model": options.model,
        "system_prompt": options.system_prompt,
        "max_turns": options.max_turns,
        "cwd": options.cwd,
        "permission_mode": permissions.permission_mode.value,
    }
    if permissions.allowed_tools is not None:
        kwargs["allowed_tools"] = list(permissions.allowed_tools)
    if permissions.allow_dangerously_skip_permissions:
        kwargs["extra_args"] = {"allow-dangerously-skip-permissions": None}
    if options.sdk_session_id and options.conversation_history:
        kwargs["resume"] = options.sdk_session_id
    if options.setting_sources is not None:
        kwargs["setting_sources"] = list(options.setting_sources)
    if options.sandbox is not None:
        kwargs["sandbox"] = options.sandbox
    if options.mcp_servers is not None:
        kwargs["mcp_servers"] = options.mcp_servers
    return kwargs


def build_prompt_payload(prompt: Prompt) -> str | AsyncIterator[dict[str, Any]]:
    """Return the prompt in the shape the SDK transport expects.

    Plain strings pass through. Multi-part prompts become a one-item stream
    holding a single user turn with no parent tool-use linkage.
    """
    if isinstance(prompt, str):
        return prompt

    content = [part.model_dump(mode="json") for part in prompt]

    async def _single_user_turn() -> AsyncIterator[dict[str, Any]]:
        yield {
            "type": "user",
            "session_id": "",
            "message": {"role": "user", "content": content},
            "parent_tool_use_id": None,
        }

    return _single_user_turn()


def _convert_block(block: object) -> ContentBlock | None:
    match block:
        case claude_agent_sdk.TextBlock(text=text):
            return TextBlock(text=text)
        case claude_agent_sdk.ThinkingBlock(thinking=thinking):
            return ThinkingBlock(thinking=thinking)
        case claude_agent_sdk.ToolUseBlock(id=tool_id, name=name, input=tool_input):
            return ToolUseBlock(id=tool_id, name=name, input=dict(tool_input or {}))
        case claude_agent_sdk.ToolResultBlock(tool_use_id=tool_use_id):
            return ToolResultBlock(
                tool_use_id=tool_use_id,
                content=block.content,
                is_error=block.is_error,
            )
        case _:
            logger.debug("Skipping unsupported content block: %s", type(block).__name__)
            return None


def _convert_blocks(content: object) -> list[ContentBlock]:
    if isinstance(content, str):
        return [TextBlock(text=content)]
    blocks = (_convert_block(block) for block in content or [])  # type: ignore[union-attr]
    return [block for block in blocks if block is not None]


def convert_sdk_message(message: object) -> ProviderMessage | None:
    """Normalize one SDK message into a ``ProviderMessage``.

    Returns ``None`` for transport-level messages (system notices, partial
    stream events) that carry nothing the orchestrator consumes.
    """
    match message:
        case claude_agent_sdk.AssistantMessage():
            return AssistantMessage(
                message=MessageBody(role="assistant", content=_convert_blocks(message.content)),
                parent_tool_use_id=getattr(message, "parent_tool_use_id", None),
            )
        case claude_agent_sdk.UserMessage():
            return UserMessage(
                message=MessageBody(role="user", content=_convert_blocks(message.content)),
                parent_tool_use_id=getattr(message, "parent_tool_use_id", None),
            )
        case claude_agent_sdk.ResultMessage():
            success = message.subtype == "success" and not message.is_error
            return ResultMessage(
                subtype="success" if success else "error",
                session_id=message.session_id,
                result=message.result,
                num_turns=message.num_turns,
                duration_ms=message.duration_ms,
                total_cost_usd=message.total_cost_usd,
            )
        case _:
            return None


class ClaudeProvider:
    """Provider backed by the Claude Agent SDK (ships as a library dependency)."""

    def __init__(self, *, query_fn: QueryFn | None = None) -> None:
        self._query_fn = query_fn

    def get_name(self) -> str:
        return "claude"

    def build_sdk_options(self, options: ExecuteOptions) -> ClaudeAgentOptions:
        return ClaudeAgentOptions(**build_sdk_option_kwargs(options))

    async def execute_query(self, options: ExecuteOptions) -> AsyncIterator[ProviderMessage]:
        """Execute a query and stream normalized messages back to the caller."""
        query_fn = self._query_fn or claude_agent_sdk.query
        try:
            sdk_options = self.build_sdk_options(options)
            prompt_payload = build_prompt_payload(options.prompt)
            stream = query_fn(prompt=prompt_payload, options=sdk_options)
            async for raw in stream_until_cancelled(
                stream, options.cancel_token, name="claude-query"
            ):
                message = convert_sdk_message(raw)
                if message is None:
                    continue
                yield message
        except Exception:
            logger.exception(
                "executeQuery() failed (model=%s, cwd=%s, resume=%s)",
                options.model,
                options.cwd,
                options.sdk_session_id,
            )
            raise

    async def detect_installation(self) -> InstallationStatus:
        """Report SDK availability; the SDK is always installed as a dependency."""
        has_api_key = bool(os.environ.get(API_KEY_ENV))
        try:
            sdk_version: str | None = version("claude-agent-sdk")
        except PackageNotFoundError:
            sdk_version = None
        return InstallationStatus(
            installed=True,
            version=sdk_version,
            method="sdk",
            has_api_key=has_api_key,
            authenticated=has_api_key,
        )

    def get_available_models(self) -> list[ModelDefinition]:
        return list(CLAUDE_MODELS)

    def supports_feature(self, feature: str) -> bool:
        return feature in SUPPORTED_FEATURES


__all__ = [
    "CLAUDE_MODELS",
    "SUPPORTED_FEATURES",
    "ClaudeProvider",
    "build_prompt_payload",
    "build_sdk_option_kwargs",
    "convert_sdk_message",
]
