"""Channel-fed stream consumption with cooperative cancellation."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING, Literal, TypeVar

if TYPE_CHECKING:
    from collections.abc import AsyncIterable, AsyncIterator

    from automaker.core.cancellation import CancellationToken

_T = TypeVar("_T")
logger = logging.getLogger(__name__)

type _Envelope = tuple[Literal["item", "error", "done"], object]


async def stream_until_cancelled(
    source: AsyncIterable[_T],
    cancel_token: CancellationToken | None,
    *,
    name: str = "provider-stream",
) -> AsyncIterator[_T]:
    """Re-yield ``source`` until it ends or ``cancel_token`` fires.

    The source is drained by a single producer task so that it is entered,
    iterated and closed from one task (transport libraries built on anyio
    require this). The hand-off queue holds at most one item, so nothing is
    buffered beyond pass-through and order is preserved. Once the token is
    cancelled no further items are yielded and the producer is torn down.
    """
    queue: asyncio.Queue[_Envelope] = asyncio.Queue(maxsize=1)

    async def _produce() -> None:
        try:
            async for item in source:
                await queue.put(("item", item))
        except Exception as exc:
            await queue.put(("error", exc))
        else:
            await queue.put(("done", None))

    producer = asyncio.create_task(_produce(), name=name)
    cancel_wait = asyncio.ensure_future(cancel_token.wait()) if cancel_token is not None else None
    try:
        while True:
            getter = asyncio.ensure_future(queue.get())
            waiters: set[asyncio.Future[object]] = {getter}
            if cancel_wait is not None:
                waiters.add(cancel_wait)
            done, _pending = await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)

            if getter not in done:
                getter.cancel()
                logger.info("%s cancelled; stopping message production", name)
                return

            kind, value = getter.result()
            if kind == "done":
                return
            if kind == "error":
                assert isinstance(value, BaseException)
                raise value
            if cancel_token is not None and cancel_token.is_cancelled:
                logger.info("%s cancelled; dropping message received after cancellation", name)
                return
            yield value  # type: ignore[misc]
    finally:
        if cancel_wait is not None:
            cancel_wait.cancel()
        if not producer.done():
            producer.cancel()
            with contextlib.suppress(asyncio.CancelledError, Exception):
                await producer
