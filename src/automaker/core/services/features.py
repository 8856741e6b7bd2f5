"""Feature work source consumed by the auto-mode loop."""

from __future__ import annotations

import asyncio
import json
import logging
from enum import StrEnum
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from automaker.core.config import atomic_write
from automaker.core.paths import get_features_dir

log = logging.getLogger(__name__)

FEATURE_FILENAME = "feature.json"


class FeatureStatus(StrEnum):
    BACKLOG = "backlog"
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    VERIFIED = "verified"
    FAILED = "failed"


PENDING_STATUSES = frozenset({FeatureStatus.BACKLOG, FeatureStatus.PENDING})


class Feature(BaseModel):
    """A unit of work the agent implements in one invocation."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    title: str = ""
    description: str = ""
    status: FeatureStatus = FeatureStatus.BACKLOG
    priority: int = 0
    model: str | None = None
    steps: list[str] = Field(default_factory=list)
    image_paths: list[str] = Field(default_factory=list)
    summary: str | None = None
    error: str | None = None

    @property
    def is_pending(self) -> bool:
        return self.status in PENDING_STATUSES


class FeatureStore(Protocol):
    async def list_features(self, project_path: Path) -> list[Feature]: ...

    async def next_pending(self, project_path: Path) -> Feature | None: ...

    async def update_status(
        self,
        project_path: Path,
        feature_id: str,
        status: FeatureStatus,
        *,
        summary: str | None = None,
        error: str | None = None,
    ) -> Feature | None: ...


def pending_order(features: list[Feature]) -> list[Feature]:
    """Pending features ordered by priority, then id."""
    return sorted(
        (feature for feature in features if feature.is_pending),
        key=lambda feature: (feature.priority, feature.id),
    )


class FileFeatureStore:
    """Features stored as ``<project>/.automaker/features/<id>/feature.json``."""

    async def _load(self, project_path: Path) -> list[tuple[Path, Feature]]:
        import aiofiles

        features_dir = get_features_dir(project_path)
        if not features_dir.is_dir():
            return []

        loaded: list[tuple[Path, Feature]] = []
        for feature_file in sorted(features_dir.glob(f"*/{FEATURE_FILENAME}")):
            async with aiofiles.open(feature_file, encoding="utf-8") as f:
                content = await f.read()
            try:
                loaded.append((feature_file, Feature.model_validate(json.loads(content))))
            except (json.JSONDecodeError, ValidationError) as exc:
                log.warning("Skipping unreadable feature file %s: %s", feature_file, exc)
        return loaded

    async def list_features(self, project_path: Path) -> list[Feature]:
        return [feature for _path, feature in await self._load(project_path)]

    async def next_pending(self, project_path: Path) -> Feature | None:
        ordered = pending_order(await self.list_features(project_path))
        return ordered[0] if ordered else None

    async def update_status(
        self,
        project_path: Path,
        feature_id: str,
        status: FeatureStatus,
        *,
        summary: str | None = None,
        error: str | None = None,
    ) -> Feature | None:
        """Persist a status change; returns ``None`` when the feature is gone."""
        found = next(
            ((path, f) for path, f in await self._load(project_path) if f.id == feature_id),
            None,
        )
        if found is None:
            log.warning("Cannot update missing feature %s", feature_id)
            return None

        path, feature = found
        changes: dict[str, object] = {"status": status, "error": error}
        if summary is not None:
            changes["summary"] = summary
        updated = feature.model_copy(update=changes)
        content = json.dumps(updated.model_dump(by_alias=True, mode="json"), indent=2)
        await asyncio.to_thread(atomic_write, path, content)
        return updated


__all__ = [
    "FEATURE_FILENAME",
    "PENDING_STATUSES",
    "Feature",
    "FeatureStatus",
    "FeatureStore",
    "FileFeatureStore",
    "pending_order",
]
