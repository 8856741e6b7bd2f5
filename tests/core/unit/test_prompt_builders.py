from __future__ import annotations

import base64
from typing import TYPE_CHECKING

from automaker.core.agents.prompt_builders import build_feature_prompt
from automaker.core.providers.types import ImagePart, TextPart
from automaker.core.services.features import Feature

if TYPE_CHECKING:
    from pathlib import Path


def test_feature_without_images_builds_text_prompt(tmp_path: Path) -> None:
    feature = Feature(
        id="f1", title="Add login", description="Use {braces} safely", steps=["Form", "Tests"]
    )

    prompt = build_feature_prompt(feature, tmp_path)

    assert isinstance(prompt, str)
    assert "Feature f1: Add login" in prompt
    assert "Use {braces} safely" in prompt
    assert "1. Form\n2. Tests" in prompt
    assert str(tmp_path) in prompt


def test_feature_with_images_builds_multipart_prompt(tmp_path: Path) -> None:
    (tmp_path / "mock.png").write_bytes(b"\x89PNG fake")
    feature = Feature(id="f2", title="UI", image_paths=["mock.png", "missing.png", "notes.txt"])

    prompt = build_feature_prompt(feature, tmp_path)

    assert isinstance(prompt, list)
    assert isinstance(prompt[0], TextPart)
    assert len(prompt) == 2
    image = prompt[1]
    assert isinstance(image, ImagePart)
    assert image.source.media_type == "image/png"
    assert base64.b64decode(image.source.data) == b"\x89PNG fake"


def test_unreadable_images_fall_back_to_text(tmp_path: Path) -> None:
    feature = Feature(id="f3", image_paths=["gone.png"])

    assert isinstance(build_feature_prompt(feature, tmp_path), str)
