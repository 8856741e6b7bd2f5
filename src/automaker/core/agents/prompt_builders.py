"""Feature prompt building and template loading."""

from __future__ import annotations

import base64
import logging
import mimetypes
from functools import cache
from importlib.resources import files
from pathlib import Path
from typing import TYPE_CHECKING

from automaker.core.providers.types import ImagePart, ImageSource, TextPart

if TYPE_CHECKING:
    from automaker.core.providers.types import Prompt, PromptPart
    from automaker.core.services.features import Feature

log = logging.getLogger(__name__)

SUPPORTED_IMAGE_TYPES = frozenset({"image/png", "image/jpeg", "image/gif", "image/webp"})

# ---------------------------------------------------------------------------
# Prompt template loading
# ---------------------------------------------------------------------------


@cache
def _load_prompt_template(filename: str) -> str:
    """Load a prompt template from package resources."""
    return (files("automaker.core.agents.prompts") / filename).read_text(encoding="utf-8")


FEATURE_PROMPT = _load_prompt_template("feature_prompt.md")


def _format_steps(steps: list[str]) -> str:
    if not steps:
        return "No explicit steps were provided; plan the work yourself."
    return "\n".join(f"{index}. {step}" for index, step in enumerate(steps, start=1))


def build_feature_text(feature: Feature, project_path: Path) -> str:
    return FEATURE_PROMPT.format(
        project_path=project_path,
        feature_id=feature.id,
        title=feature.title or feature.id,
        description=feature.description.strip() or "(no description)",
        steps=_format_steps(feature.steps),
    )


def _load_image(path: Path) -> ImagePart | None:
    media_type, _ = mimetypes.guess_type(path.name)
    if media_type not in SUPPORTED_IMAGE_TYPES:
        log.warning("Skipping unsupported image attachment %s", path)
        return None
    try:
        data = path.read_bytes()
    except OSError as exc:
        log.warning("Skipping unreadable image attachment %s: %s", path, exc)
        return None
    return ImagePart(
        source=ImageSource(media_type=media_type, data=base64.b64encode(data).decode("ascii"))
    )


def build_feature_prompt(feature: Feature, project_path: Path) -> Prompt:
    """Build the invocation prompt for a feature.

    Features without images get a plain string. Image attachments (paths are
    resolved against the project) turn the prompt into text + image parts.
    """
    text = build_feature_text(feature, project_path)
    if not feature.image_paths:
        return text

    parts: list[PromptPart] = [TextPart(text=text)]
    for raw_path in feature.image_paths:
        path = Path(raw_path)
        if not path.is_absolute():
            path = project_path / path
        image = _load_image(path)
        if image is not None:
            parts.append(image)
    return parts if len(parts) > 1 else text


__all__ = ["FEATURE_PROMPT", "build_feature_prompt", "build_feature_text"]
