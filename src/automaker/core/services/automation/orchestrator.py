"""AutoModeService: the single auto-mode run loop per service instance."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol

from automaker.core.cancellation import CancellationToken
from automaker.core.config import AutomakerConfig
from automaker.core.errors import AutoModeAlreadyRunningError, get_error_message
from automaker.core.events import AUTO_MODE_EVENT, AutoModeEventType
from automaker.core.providers.router import ProviderRouter
from automaker.core.utils import BackgroundTasks

from .runner import FeatureOutcome, FeatureRunner
from .state import AutoLoopState, AutoModeStatus, LoopStatus

if TYPE_CHECKING:
    from collections.abc import Callable

    from automaker.core.events import EventBus
    from automaker.core.services.features import FeatureStore
    from automaker.core.services.settings import SettingsService

log = logging.getLogger(__name__)


class AutoModeService(Protocol):
    """Protocol boundary for the auto-mode loop lifecycle."""

    async def start_auto_loop(
        self, project_path: str | Path, target_count: int | None = None
    ) -> None: ...

    async def stop_auto_loop(self) -> int: ...

    async def wait_for_completion(self, timeout: float | None = None) -> bool: ...

    def get_status(self) -> AutoModeStatus: ...


class AutoModeServiceImpl:
    """Runs features one at a time until a target count, exhaustion or failure.

    ``start_auto_loop`` returns as soon as the loop task is spawned; use
    ``wait_for_completion`` to block until it ends. Only one loop may be
    running or stopping at a time.
    """

    def __init__(
        self,
        *,
        events: EventBus,
        feature_store: FeatureStore,
        router: ProviderRouter | None = None,
        settings_service: SettingsService | None = None,
        config: AutomakerConfig | None = None,
    ) -> None:
        self._events = events
        self._features = feature_store
        self._config = config or AutomakerConfig()
        self._runner = FeatureRunner(
            feature_store=feature_store,
            router=router or ProviderRouter(),
            config=self._config,
            settings_service=settings_service,
        )
        self._lock = asyncio.Lock()
        self._background_tasks = BackgroundTasks()
        self._status = LoopStatus.IDLE
        self._state: AutoLoopState | None = None
        self._last_error: str | None = None
        self._finished = asyncio.Event()
        self._finished.set()

    # ------------------------------------------------------------------
    # Lifecycle: start / stop
    # ------------------------------------------------------------------

    async def start_auto_loop(
        self, project_path: str | Path, target_count: int | None = None
    ) -> None:
        """Start the loop in the background.

        Raises:
            AutoModeAlreadyRunningError: a loop is running or still stopping.
            ValueError: ``target_count`` is not positive.
        """
        if target_count is not None and target_count < 1:
            raise ValueError("target_count must be at least 1")

        async with self._lock:
            if self._status in (LoopStatus.RUNNING, LoopStatus.STOPPING):
                current = self._state.project_path if self._state is not None else None
                raise AutoModeAlreadyRunningError(str(current) if current else None)

            state = AutoLoopState(
                project_path=Path(project_path).resolve(),
                cancel_token=CancellationToken(),
                target_count=target_count,
            )
            self._state = state
            self._status = LoopStatus.RUNNING
            self._last_error = None
            self._finished.clear()

            limit = f"up to {target_count} features" if target_count else "all pending features"
            self._emit(state, AutoModeEventType.STARTED, f"Auto mode started ({limit})")
            log.info("Auto mode started for %s (target=%s)", state.project_path, target_count)
            state.task = self._background_tasks.spawn(
                self._run_loop(state), name=f"auto-mode:{state.project_path.name}"
            )

    async def stop_auto_loop(self) -> int:
        """Request the loop to stop and wait for it to wind down.

        Returns the number of agent invocations in flight when the stop was
        requested (0 when idle).
        """
        state = self._state
        if state is None:
            return 0
        if self._status is LoopStatus.STOPPING:
            await self._finished.wait()
            return 0

        active = state.active_invocations
        self._status = LoopStatus.STOPPING
        log.info("Stopping auto mode (%d active invocation(s))", active)
        state.cancel_token.cancel("Auto mode stopped by user")

        task = state.task
        if task is not None and not task.done():
            done, _pending = await asyncio.wait(
                {task}, timeout=self._config.auto_mode.stop_timeout_seconds
            )
            if not done:
                log.warning("Auto loop did not stop in time; cancelling task")
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        if self._state is state:
            self._finish(state, failed=False)
        return active

    async def wait_for_completion(self, timeout: float | None = None) -> bool:
        """Wait for the current loop to end; ``False`` on timeout."""
        try:
            await asyncio.wait_for(self._finished.wait(), timeout)
        except TimeoutError:
            return False
        return True

    async def shutdown(self) -> None:
        await self.stop_auto_loop()
        await self._background_tasks.shutdown()

    def get_status(self) -> AutoModeStatus:
        state = self._state
        if state is None:
            return AutoModeStatus(
                status=self._status, is_running=False, last_error=self._last_error
            )
        return AutoModeStatus(
            status=self._status,
            is_running=self._status is LoopStatus.RUNNING,
            iteration=state.iteration,
            completed=state.completed,
            target_count=state.target_count,
            project_path=str(state.project_path),
            current_feature_id=state.current_feature_id,
            last_error=self._last_error,
        )

    @property
    def is_running(self) -> bool:
        return self._status is LoopStatus.RUNNING

    # ------------------------------------------------------------------
    # Loop body
    # ------------------------------------------------------------------

    async def _run_loop(self, state: AutoLoopState) -> None:
        failed = False
        try:
            while not state.cancel_token.is_cancelled:
                if state.target_reached:
                    self._emit(
                        state,
                        AutoModeEventType.COMPLETE,
                        f"Auto mode complete: {state.completed} feature(s) implemented",
                    )
                    break

                feature = await self._features.next_pending(state.project_path)
                if feature is None:
                    self._emit(
                        state,
                        AutoModeEventType.COMPLETE,
                        "No pending features remaining",
                    )
                    break
                if state.cancel_token.is_cancelled:
                    break

                state.iteration += 1
                state.current_feature_id = feature.id
                self._emit(
                    state,
                    AutoModeEventType.ITERATION_STARTED,
                    f"Iteration {state.iteration}: starting {feature.title or feature.id}",
                    featureId=feature.id,
                )

                result = await self._runner.run(feature, state, self._emitter(state))
                state.current_feature_id = None

                match result.outcome:
                    case FeatureOutcome.VERIFIED:
                        state.completed += 1
                        self._emit(
                            state,
                            AutoModeEventType.FEATURE_COMPLETE,
                            f"Feature {feature.id} completed",
                            featureId=feature.id,
                            passes=True,
                            summary=result.summary,
                        )
                    case FeatureOutcome.CANCELLED:
                        break
                    case FeatureOutcome.FAILED:
                        failed = True
                        self._last_error = result.error
                        self._emit(
                            state,
                            AutoModeEventType.ERROR,
                            f"Feature {feature.id} failed: {result.error}",
                            featureId=feature.id,
                            error=result.error,
                        )
                        break
        except Exception as exc:
            failed = True
            self._last_error = get_error_message(exc)
            log.exception("Auto loop failed for %s", state.project_path)
            self._emit(state, AutoModeEventType.ERROR, f"Auto mode error: {self._last_error}")
        finally:
            self._finish(state, failed=failed)

    def _finish(self, state: AutoLoopState, *, failed: bool) -> None:
        if self._state is not state:
            return
        self._status = LoopStatus.FAILED if failed else LoopStatus.IDLE
        self._emit(
            state,
            AutoModeEventType.STOPPED,
            "Auto mode stopped",
            completed=state.completed,
        )
        log.info(
            "Auto mode finished for %s after %d iteration(s)",
            state.project_path,
            state.iteration,
        )
        self._state = None
        self._finished.set()

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def _emit(
        self,
        state: AutoLoopState,
        event_type: AutoModeEventType,
        message: str,
        **extra: Any,
    ) -> None:
        payload: dict[str, Any] = {
            "type": event_type.value,
            "message": message,
            "iteration": state.iteration,
            "projectPath": str(state.project_path),
            **extra,
        }
        self._events.emit(AUTO_MODE_EVENT, payload)

    def _emitter(self, state: AutoLoopState) -> Callable[..., None]:
        def _emit_for_state(event_type: AutoModeEventType, message: str, **extra: Any) -> None:
            self._emit(state, event_type, message, **extra)

        return _emit_for_state


__all__ = ["AutoModeService", "AutoModeServiceImpl"]
