"""Run-loop state for the auto-mode service."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import asyncio
    from pathlib import Path

    from automaker.core.cancellation import CancellationToken


class LoopStatus(StrEnum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPING = "stopping"
    FAILED = "failed"


@dataclass(slots=True)
class AutoLoopState:
    """Mutable state of the one active loop; discarded when the loop ends."""

    project_path: Path
    cancel_token: CancellationToken
    target_count: int | None = None
    iteration: int = 0
    completed: int = 0
    current_feature_id: str | None = None
    active_invocations: int = 0
    task: asyncio.Task[None] | None = None

    @property
    def target_reached(self) -> bool:
        return self.target_count is not None and self.completed >= self.target_count


@dataclass(frozen=True, slots=True)
class AutoModeStatus:
    """Point-in-time snapshot returned by ``AutoModeService.get_status``."""

    status: LoopStatus
    is_running: bool
    iteration: int = 0
    completed: int = 0
    target_count: int | None = None
    project_path: str | None = None
    current_feature_id: str | None = None
    last_error: str | None = None


__all__ = ["AutoLoopState", "AutoModeStatus", "LoopStatus"]
