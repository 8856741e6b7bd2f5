"""Core utility helpers: background tasks and text truncation."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING, Any, TypeVar

from automaker.core.limits import BACKGROUND_SHUTDOWN_TIMEOUT

if TYPE_CHECKING:
    from collections.abc import Coroutine

_T = TypeVar("_T")
log = logging.getLogger(__name__)


def truncate_text(content: str, *, max_chars: int, suffix: str = "... [truncated]") -> str:
    """Trim oversized text and keep the head."""
    if max_chars <= 0:
        return ""
    if len(content) <= max_chars:
        return content
    if max_chars <= len(suffix):
        return content[:max_chars]
    return f"{content[: max_chars - len(suffix)]}{suffix}"


class BackgroundTasks:
    """Track lightweight background tasks and shut them down gracefully."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()

    def __len__(self) -> int:
        return sum(1 for task in self._tasks if not task.done())

    def register(self, task: asyncio.Task[_T]) -> asyncio.Task[_T]:
        """Register an existing task and remove it once it completes."""
        self._tasks.add(task)

        def _on_done(done_task: asyncio.Task[object]) -> None:
            self._tasks.discard(done_task)
            if done_task.cancelled():
                return
            with contextlib.suppress(asyncio.CancelledError):
                exc = done_task.exception()
            if exc is None:
                return
            log.error(
                "Background task failed",
                extra={"task_name": done_task.get_name()},
                exc_info=(type(exc), exc, exc.__traceback__),
            )

        task.add_done_callback(_on_done)
        return task

    def spawn(
        self,
        coro: Coroutine[Any, Any, _T],
        *,
        name: str | None = None,
    ) -> asyncio.Task[_T]:
        """Create and register a background task."""
        return self.register(asyncio.create_task(coro, name=name))

    async def shutdown(self, *, timeout: float = BACKGROUND_SHUTDOWN_TIMEOUT) -> None:
        """Cancel tracked tasks and wait briefly for graceful completion."""
        pending = [task for task in self._tasks if not task.done()]
        if not pending:
            return

        for task in pending:
            task.cancel()

        done, _pending = await asyncio.wait(pending, timeout=timeout)
        if done:
            await asyncio.gather(*done, return_exceptions=True)
