"""Configuration loader for Automaker."""

from __future__ import annotations

import asyncio
import os
import tempfile
import tomllib
from pathlib import Path

import tomlkit
from pydantic import BaseModel, Field, field_validator

from automaker.core.limits import AUTO_LOOP_STOP_TIMEOUT, DEFAULT_MAX_TURNS, MCP_TEST_TIMEOUT_MS
from automaker.core.paths import ensure_directories, get_config_path

SETTING_SOURCE_VALUES = frozenset({"user", "project", "local"})


def atomic_write(path: Path, content: str) -> None:
    """Write file atomically to avoid partial/corrupt writes."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=".tmp_")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
        Path(tmp_path).replace(path)
    except Exception:
        Path(tmp_path).unlink(missing_ok=True)
        raise


class GeneralConfig(BaseModel):
    """Defaults applied to every agent invocation."""

    default_model: str = Field(
        default="sonnet",
        description="Model alias or full model id used when a feature does not pick one",
    )
    max_turns: int = Field(default=DEFAULT_MAX_TURNS, ge=1, le=500)
    system_prompt: str | None = Field(
        default=None, description="System prompt override for auto-mode invocations"
    )

    @field_validator("default_model", mode="before")
    @classmethod
    def validate_default_model(cls, value: object) -> str:
        """Fall back to the sonnet alias for blank model names."""
        match value:
            case str() as model if model.strip():
                return model.strip()
            case _:
                pass
        return "sonnet"


class AutoModeConfig(BaseModel):
    """Auto-mode run-loop settings."""

    stop_timeout_seconds: float = Field(
        default=AUTO_LOOP_STOP_TIMEOUT,
        gt=0,
        description="Seconds to wait for the loop to wind down before hard-cancelling it",
    )
    setting_sources: list[str] = Field(
        default_factory=list,
        description="Setting sources forwarded to the agent session (user, project, local)",
    )

    @field_validator("setting_sources", mode="before")
    @classmethod
    def validate_setting_sources(cls, value: object) -> list[str]:
        """Drop unknown setting sources instead of failing the whole config."""
        match value:
            case list() as sources:
                return [s for s in sources if isinstance(s, str) and s in SETTING_SOURCE_VALUES]
            case _:
                return []


class McpConfig(BaseModel):
    """MCP connection-test settings."""

    test_timeout_ms: int = Field(default=MCP_TEST_TIMEOUT_MS, ge=100, le=120_000)


class AutomakerConfig(BaseModel):
    """Root configuration model."""

    general: GeneralConfig = Field(default_factory=GeneralConfig)
    auto_mode: AutoModeConfig = Field(default_factory=AutoModeConfig)
    mcp: McpConfig = Field(default_factory=McpConfig)

    @classmethod
    def load(cls, config_path: Path | None = None) -> AutomakerConfig:
        """Load configuration from TOML file or use defaults."""
        if config_path is None:
            ensure_directories()
            config_path = get_config_path()

        if config_path.exists():
            with open(config_path, "rb") as f:
                data = tomllib.load(f)
            return cls.model_validate(data)

        return cls()

    async def save(self, path: Path) -> None:
        """Serialize current config to TOML file.

        Args:
            path: Path to write config file (created if missing)
        """
        doc = tomlkit.document()
        for section_name, section in (
            ("general", self.general),
            ("auto_mode", self.auto_mode),
            ("mcp", self.mcp),
        ):
            table = tomlkit.table()
            for key, value in section.model_dump().items():
                if value is not None:
                    table[key] = value
            doc[section_name] = table

        content = tomlkit.dumps(doc)
        await asyncio.to_thread(atomic_write, path, content)
