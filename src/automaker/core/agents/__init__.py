"""Agent prompt utilities for Automaker."""

from __future__ import annotations

from automaker.core.agents.prompt_builders import build_feature_prompt

__all__ = ["build_feature_prompt"]
