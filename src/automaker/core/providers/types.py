"""Shared types for AI model providers.

Message and content-block shapes follow the agent SDK streaming format so a
provider can pass messages through with a thin normalization step.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from automaker.core.cancellation import CancellationToken
from automaker.core.limits import DEFAULT_MAX_TURNS

# ---------------------------------------------------------------------------
# Prompt payload
# ---------------------------------------------------------------------------


class TextPart(BaseModel):
    """Plain text segment of a multi-part prompt."""

    type: Literal["text"] = "text"
    text: str


class ImageSource(BaseModel):
    type: Literal["base64"] = "base64"
    media_type: str
    data: str


class ImagePart(BaseModel):
    """Inline image segment of a multi-part prompt."""

    type: Literal["image"] = "image"
    source: ImageSource


PromptPart = Annotated[TextPart | ImagePart, Field(discriminator="type")]
Prompt = str | list[PromptPart]


class ConversationMessage(BaseModel):
    """One prior turn of conversation history."""

    role: Literal["user", "assistant"]
    content: str | list[dict[str, Any]]


# ---------------------------------------------------------------------------
# Execute options
# ---------------------------------------------------------------------------


class ExecuteOptions(BaseModel):
    """Immutable per-invocation configuration for ``Provider.execute_query``."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    prompt: Prompt
    model: str
    cwd: str
    system_prompt: str | None = None
    max_turns: int = Field(default=DEFAULT_MAX_TURNS, ge=1)
    allowed_tools: tuple[str, ...] | None = None
    cancel_token: CancellationToken | None = None
    conversation_history: tuple[ConversationMessage, ...] = ()
    sdk_session_id: str | None = None
    mcp_servers: dict[str, dict[str, Any]] | None = None
    mcp_auto_approve_tools: bool | None = None
    mcp_unrestricted_tools: bool | None = None
    setting_sources: tuple[str, ...] | None = None
    sandbox: dict[str, Any] | None = None


# ---------------------------------------------------------------------------
# Provider messages
# ---------------------------------------------------------------------------


class TextBlock(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ToolUseBlock(BaseModel):
    type: Literal["tool_use"] = "tool_use"
    id: str | None = None
    name: str
    input: dict[str, Any] = Field(default_factory=dict)


class ThinkingBlock(BaseModel):
    type: Literal["thinking"] = "thinking"
    thinking: str


class ToolResultBlock(BaseModel):
    type: Literal["tool_result"] = "tool_result"
    tool_use_id: str
    content: str | list[dict[str, Any]] | None = None
    is_error: bool | None = None


ContentBlock = Annotated[
    TextBlock | ToolUseBlock | ThinkingBlock | ToolResultBlock,
    Field(discriminator="type"),
]


class MessageBody(BaseModel):
    role: Literal["user", "assistant"]
    content: list[ContentBlock] = Field(default_factory=list)


class AssistantMessage(BaseModel):
    type: Literal["assistant"] = "assistant"
    message: MessageBody
    parent_tool_use_id: str | None = None


class UserMessage(BaseModel):
    type: Literal["user"] = "user"
    message: MessageBody
    parent_tool_use_id: str | None = None


class ErrorMessage(BaseModel):
    type: Literal["error"] = "error"
    error: str


class ResultMessage(BaseModel):
    """Terminal outcome of a session."""

    type: Literal["result"] = "result"
    subtype: Literal["success", "error"]
    session_id: str | None = None
    result: str | None = None
    num_turns: int | None = None
    duration_ms: int | None = None
    total_cost_usd: float | None = None

    @property
    def is_success(self) -> bool:
        return self.subtype == "success"


ProviderMessage = Annotated[
    AssistantMessage | UserMessage | ErrorMessage | ResultMessage,
    Field(discriminator="type"),
]


# ---------------------------------------------------------------------------
# Status and catalog
# ---------------------------------------------------------------------------


class InstallationStatus(BaseModel):
    """Whether a provider is usable right now."""

    installed: bool
    path: str | None = None
    version: str | None = None
    method: Literal["cli", "npm", "brew", "sdk"] | None = None
    has_api_key: bool = False
    authenticated: bool = False
    error: str | None = None


class ModelDefinition(BaseModel):
    """Static catalog entry for a model a provider can run."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    model_string: str
    provider: str
    description: str
    context_window: int | None = None
    max_output_tokens: int | None = None
    supports_vision: bool = False
    supports_tools: bool = False
    tier: Literal["basic", "standard", "premium"] | None = None
    default: bool = False


__all__ = [
    "AssistantMessage",
    "ContentBlock",
    "ConversationMessage",
    "ErrorMessage",
    "ExecuteOptions",
    "ImagePart",
    "ImageSource",
    "InstallationStatus",
    "MessageBody",
    "ModelDefinition",
    "Prompt",
    "PromptPart",
    "ProviderMessage",
    "ResultMessage",
    "TextBlock",
    "TextPart",
    "ThinkingBlock",
    "ToolResultBlock",
    "ToolUseBlock",
    "UserMessage",
]
