from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

from automaker.core.cancellation import CancellationToken
from automaker.core.providers.streaming import stream_until_cancelled

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


async def _numbers(count: int) -> AsyncIterator[int]:
    for value in range(count):
        await asyncio.sleep(0)
        yield value


async def test_passes_items_through_in_order() -> None:
    received = [item async for item in stream_until_cancelled(_numbers(50), None)]
    assert received == list(range(50))


async def test_reraises_source_errors_after_prior_items() -> None:
    async def _failing() -> AsyncIterator[int]:
        yield 1
        raise ValueError("bad frame")

    received = []
    with pytest.raises(ValueError, match="bad frame"):
        async for item in stream_until_cancelled(_failing(), CancellationToken()):
            received.append(item)
    assert received == [1]


async def test_stops_promptly_when_token_fires_while_waiting() -> None:
    token = CancellationToken()
    closed = asyncio.Event()

    async def _slow() -> AsyncIterator[str]:
        try:
            yield "first"
            await asyncio.sleep(30)
            yield "never"
        finally:
            closed.set()

    received = []
    async for item in stream_until_cancelled(_slow(), token):
        received.append(item)
        asyncio.get_running_loop().call_later(0.01, token.cancel)

    assert received == ["first"]
    await asyncio.wait_for(closed.wait(), timeout=1)


async def test_already_cancelled_token_yields_nothing_after_cancel() -> None:
    token = CancellationToken()
    token.cancel("before start")

    received = [item async for item in stream_until_cancelled(_numbers(3), token)]

    assert received == []
