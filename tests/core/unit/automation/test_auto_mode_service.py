from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

from automaker.core.config import AutomakerConfig
from automaker.core.errors import AutoModeAlreadyRunningError
from automaker.core.services.automation import AutoModeServiceImpl, LoopStatus
from automaker.core.services.features import FeatureStatus
from automaker.core.services.settings import GlobalSettings, StaticSettingsService
from tests.helpers.fakes import (
    ScriptedProvider,
    assistant_text,
    assistant_tool,
    error_result,
    event_types,
    make_stdio_config,
    record_auto_mode_events,
    router_for,
    success_result,
)
from tests.helpers.wait import wait_until

if TYPE_CHECKING:
    from pathlib import Path

    from automaker.core.events import InMemoryEventBus
    from tests.helpers.fakes import InMemoryFeatureStore


def _service(
    event_bus: InMemoryEventBus,
    feature_store: InMemoryFeatureStore,
    provider: ScriptedProvider,
    *,
    settings: GlobalSettings | None = None,
    config: AutomakerConfig | None = None,
) -> AutoModeServiceImpl:
    return AutoModeServiceImpl(
        events=event_bus,
        feature_store=feature_store,
        router=router_for(provider),
        settings_service=StaticSettingsService(settings),
        config=config,
    )


async def test_start_emits_started_event_and_runs_in_background(
    tmp_path: Path, event_bus: InMemoryEventBus, feature_store: InMemoryFeatureStore
) -> None:
    feature_store.add("f1")
    events = record_auto_mode_events(event_bus)
    service = _service(event_bus, feature_store, ScriptedProvider([success_result()]))

    await service.start_auto_loop(tmp_path)

    assert events[0]["type"] == "auto_mode_started"
    assert "Auto mode started" in events[0]["message"]
    assert events[0]["iteration"] == 0
    assert events[0]["projectPath"] == str(tmp_path.resolve())
    assert await service.wait_for_completion(timeout=5)
    assert feature_store.status_of("f1") is FeatureStatus.VERIFIED
    assert event_types(events) == [
        "auto_mode_started",
        "auto_mode_iteration_started",
        "auto_mode_feature_complete",
        "auto_mode_complete",
        "auto_mode_stopped",
    ]
    assert service.get_status().status is LoopStatus.IDLE


async def test_second_start_is_rejected_without_disturbing_first(
    tmp_path: Path, event_bus: InMemoryEventBus, feature_store: InMemoryFeatureStore
) -> None:
    feature_store.add("f1")
    provider = ScriptedProvider("block")
    service = _service(event_bus, feature_store, provider)

    await service.start_auto_loop(tmp_path)
    await asyncio.wait_for(provider.started.wait(), timeout=5)
    before = service.get_status()

    with pytest.raises(AutoModeAlreadyRunningError, match="already running") as exc_info:
        await service.start_auto_loop(tmp_path)

    assert exc_info.value.code == "AUTO_MODE_ALREADY_RUNNING"
    after = service.get_status()
    assert after.is_running
    assert after.iteration == before.iteration == 1
    assert len(provider.calls) == 1
    await service.stop_auto_loop()


async def test_concurrent_starts_admit_exactly_one(
    tmp_path: Path, event_bus: InMemoryEventBus, feature_store: InMemoryFeatureStore
) -> None:
    feature_store.add("f1")
    service = _service(event_bus, feature_store, ScriptedProvider("block"))

    results = await asyncio.gather(
        *(service.start_auto_loop(tmp_path) for _ in range(5)), return_exceptions=True
    )

    assert sum(result is None for result in results) == 1
    assert all(
        isinstance(result, AutoModeAlreadyRunningError) for result in results if result is not None
    )
    await service.stop_auto_loop()


async def test_stop_when_idle_returns_zero(
    event_bus: InMemoryEventBus, feature_store: InMemoryFeatureStore
) -> None:
    events = record_auto_mode_events(event_bus)
    service = _service(event_bus, feature_store, ScriptedProvider())

    assert await service.stop_auto_loop() == 0
    assert await service.stop_auto_loop() == 0
    assert events == []
    assert service.get_status().status is LoopStatus.IDLE


async def test_stop_cancels_in_flight_invocation(
    tmp_path: Path, event_bus: InMemoryEventBus, feature_store: InMemoryFeatureStore
) -> None:
    feature_store.add("f1")
    feature_store.add("f2", priority=1)
    events = record_auto_mode_events(event_bus)
    provider = ScriptedProvider("block")
    service = _service(event_bus, feature_store, provider)

    await service.start_auto_loop(tmp_path)
    await asyncio.wait_for(provider.started.wait(), timeout=5)
    await wait_until(lambda: service.get_status().current_feature_id == "f1")

    active = await service.stop_auto_loop()

    assert active == 1
    assert service.get_status().status is LoopStatus.IDLE
    assert not service.is_running
    assert feature_store.status_of("f1") is FeatureStatus.PENDING
    assert feature_store.status_of("f2") is FeatureStatus.BACKLOG
    assert provider.calls[0].cancel_token is not None
    assert provider.calls[0].cancel_token.is_cancelled
    assert event_types(events)[-1] == "auto_mode_stopped"
    assert await service.stop_auto_loop() == 0


async def test_target_count_limits_iterations(
    tmp_path: Path, event_bus: InMemoryEventBus, feature_store: InMemoryFeatureStore
) -> None:
    for index in range(3):
        feature_store.add(f"f{index}", priority=index)
    provider = ScriptedProvider([success_result()], [success_result()], [success_result()])
    service = _service(event_bus, feature_store, provider)

    await service.start_auto_loop(tmp_path, target_count=2)
    assert await service.wait_for_completion(timeout=5)

    assert len(provider.calls) == 2
    assert feature_store.status_of("f0") is FeatureStatus.VERIFIED
    assert feature_store.status_of("f1") is FeatureStatus.VERIFIED
    assert feature_store.status_of("f2") is FeatureStatus.BACKLOG


async def test_progress_and_tool_events_carry_iteration(
    tmp_path: Path, event_bus: InMemoryEventBus, feature_store: InMemoryFeatureStore
) -> None:
    feature_store.add("f1")
    events = record_auto_mode_events(event_bus)
    provider = ScriptedProvider(
        [assistant_text("Planning"), assistant_tool("Write", path="a.py"), success_result()]
    )
    service = _service(event_bus, feature_store, provider)

    await service.start_auto_loop(tmp_path)
    await service.wait_for_completion(timeout=5)

    progress = next(e for e in events if e["type"] == "auto_mode_progress")
    tool = next(e for e in events if e["type"] == "auto_mode_tool")
    assert progress["message"] == "Planning"
    assert progress["iteration"] == 1
    assert tool["tool"] == "Write"
    assert tool["input"] == {"path": "a.py"}
    assert all("message" in e and "iteration" in e for e in events)


@pytest.mark.parametrize(
    "script",
    [
        [error_result("compile failed")],
        [assistant_text("hm")],
        RuntimeError("compile failed"),
    ],
    ids=["error-result", "missing-result", "raised"],
)
async def test_provider_failure_marks_feature_failed_and_stops(
    script: object,
    tmp_path: Path,
    event_bus: InMemoryEventBus,
    feature_store: InMemoryFeatureStore,
) -> None:
    feature_store.add("f1")
    feature_store.add("f2", priority=1)
    events = record_auto_mode_events(event_bus)
    provider = ScriptedProvider(script, [success_result()])
    service = _service(event_bus, feature_store, provider)

    await service.start_auto_loop(tmp_path)
    await service.wait_for_completion(timeout=5)

    assert len(provider.calls) == 1
    assert feature_store.status_of("f1") is FeatureStatus.FAILED
    assert feature_store.status_of("f2") is FeatureStatus.BACKLOG
    status = service.get_status()
    assert status.status is LoopStatus.FAILED
    assert status.last_error
    assert event_types(events)[-2:] == ["auto_mode_error", "auto_mode_stopped"]


async def test_failed_loop_can_be_restarted(
    tmp_path: Path, event_bus: InMemoryEventBus, feature_store: InMemoryFeatureStore
) -> None:
    feature_store.add("f1")
    feature_store.add("f2", priority=1)
    provider = ScriptedProvider([error_result()], [success_result()])
    service = _service(event_bus, feature_store, provider)

    await service.start_auto_loop(tmp_path)
    await service.wait_for_completion(timeout=5)
    await service.start_auto_loop(tmp_path)
    await service.wait_for_completion(timeout=5)

    assert feature_store.status_of("f2") is FeatureStatus.VERIFIED
    assert service.get_status().status is LoopStatus.IDLE


async def test_invocation_options_come_from_settings_and_config(
    tmp_path: Path, event_bus: InMemoryEventBus, feature_store: InMemoryFeatureStore
) -> None:
    feature_store.add("f1")
    feature_store.add("f2", priority=1, model="claude-haiku-4-5-20251001")
    settings = GlobalSettings(
        mcp_servers=[make_stdio_config(name="files")], mcp_unrestricted_tools=False
    )
    config = AutomakerConfig.model_validate(
        {
            "general": {"default_model": "opus", "max_turns": 9},
            "auto_mode": {"setting_sources": ["project"]},
        }
    )
    provider = ScriptedProvider()
    service = _service(event_bus, feature_store, provider, settings=settings, config=config)

    await service.start_auto_loop(tmp_path)
    await service.wait_for_completion(timeout=5)

    first, second = provider.calls
    assert first.model == "opus"
    assert second.model == "claude-haiku-4-5-20251001"
    assert first.max_turns == 9
    assert first.cwd == str(tmp_path.resolve())
    assert first.setting_sources == ("project",)
    assert first.mcp_servers is not None and set(first.mcp_servers) == {"files"}
    assert first.mcp_unrestricted_tools is False
    assert first.mcp_auto_approve_tools is None


async def test_no_pending_features_completes_immediately(
    tmp_path: Path, event_bus: InMemoryEventBus, feature_store: InMemoryFeatureStore
) -> None:
    events = record_auto_mode_events(event_bus)
    service = _service(event_bus, feature_store, ScriptedProvider())

    await service.start_auto_loop(tmp_path)
    await service.wait_for_completion(timeout=5)

    assert event_types(events) == ["auto_mode_started", "auto_mode_complete", "auto_mode_stopped"]


async def test_invalid_target_count_is_rejected(
    tmp_path: Path, event_bus: InMemoryEventBus, feature_store: InMemoryFeatureStore
) -> None:
    service = _service(event_bus, feature_store, ScriptedProvider())

    with pytest.raises(ValueError, match="at least 1"):
        await service.start_auto_loop(tmp_path, target_count=0)
    assert service.get_status().status is LoopStatus.IDLE
