"""Cooperative cancellation handles passed alongside agent invocations."""

from __future__ import annotations

import asyncio


class CancellationToken:
    """One-shot cancellation signal.

    Child tokens are cancelled together with their parent, which lets the
    auto-mode loop hand every invocation its own handle while a single stop
    request still reaches whichever invocation is in flight.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._children: list[CancellationToken] = []
        self.reason: str | None = None

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str | None = None) -> None:
        """Signal cancellation. Repeated calls keep the first reason."""
        if self._event.is_set():
            return
        self.reason = reason
        self._event.set()
        children, self._children = self._children, []
        for child in children:
            child.cancel(reason)

    async def wait(self) -> None:
        """Block until the token is cancelled."""
        await self._event.wait()

    def child(self) -> CancellationToken:
        """Create a token that is cancelled whenever this one is."""
        token = CancellationToken()
        if self.is_cancelled:
            token.cancel(self.reason)
        else:
            self._children.append(token)
        return token

    def release(self, child: CancellationToken) -> None:
        """Forget a finished child so long-lived parents do not accumulate them."""
        if child in self._children:
            self._children.remove(child)

    def __repr__(self) -> str:
        state = "cancelled" if self.is_cancelled else "active"
        return f"CancellationToken({state})"
