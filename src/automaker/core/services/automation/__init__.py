from __future__ import annotations

from automaker.core.services.automation.orchestrator import AutoModeService, AutoModeServiceImpl
from automaker.core.services.automation.runner import (
    FeatureOutcome,
    FeatureRunner,
    FeatureRunResult,
)
from automaker.core.services.automation.state import AutoLoopState, AutoModeStatus, LoopStatus

__all__ = [
    "AutoLoopState",
    "AutoModeService",
    "AutoModeServiceImpl",
    "AutoModeStatus",
    "FeatureOutcome",
    "FeatureRunResult",
    "FeatureRunner",
    "LoopStatus",
]
