from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING, Any

import pytest

from automaker.core.errors import McpConfigError
from automaker.core.mcp import transports
from automaker.core.mcp.transports import (
    build_stdio_parameters,
    open_transport,
    validate_server_config,
)
from tests.helpers.fakes import make_stdio_config

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


def test_stdio_env_is_layered_over_default_environment() -> None:
    params = build_stdio_parameters(
        make_stdio_config(args=["-y", "server"], env={"TOKEN": "secret"})
    )

    assert params.command == "npx"
    assert params.args == ["-y", "server"]
    assert params.env is not None
    assert params.env["TOKEN"] == "secret"
    assert "PATH" in params.env


def test_validate_accepts_complete_configs() -> None:
    validate_server_config(make_stdio_config())
    validate_server_config(make_stdio_config(type="http", command=None, url="http://h/mcp"))


async def test_open_transport_rejects_invalid_config_before_connecting() -> None:
    with pytest.raises(McpConfigError, match="URL is required for SSE transport"):
        async with open_transport(make_stdio_config(type="sse", command=None)):
            pass


class _RecordingClients:
    """Stand-ins for the mcp client context managers that record their arguments."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple[Any, ...], dict[str, Any]]] = []

    def _client(self, kind: str, streams: tuple[Any, ...]):
        @contextlib.asynccontextmanager
        async def _open(*args: Any, **kwargs: Any) -> AsyncIterator[tuple[Any, ...]]:
            self.calls.append((kind, args, kwargs))
            yield streams

        return _open

    def install(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(transports, "sse_client", self._client("sse", ("r", "w")))
        monkeypatch.setattr(
            transports, "streamablehttp_client", self._client("http", ("r", "w", lambda: None))
        )
        monkeypatch.setattr(transports, "stdio_client", self._client("stdio", ("r", "w")))


@pytest.fixture
def clients(monkeypatch: pytest.MonkeyPatch) -> _RecordingClients:
    recorder = _RecordingClients()
    recorder.install(monkeypatch)
    return recorder


@pytest.mark.parametrize("server_type", ["sse", "http"])
async def test_open_transport_forwards_url_and_headers(
    clients: _RecordingClients, server_type: str
) -> None:
    config = make_stdio_config(
        type=server_type,
        command=None,
        url="https://mcp.example/endpoint",
        headers={"Authorization": "Bearer token", "X-Team": "core"},
    )

    async with open_transport(config) as (read, write):
        assert (read, write) == ("r", "w")

    [(kind, args, kwargs)] = clients.calls
    assert kind == server_type
    assert args == ("https://mcp.example/endpoint",)
    assert kwargs["headers"] == config.headers


async def test_open_transport_spawns_stdio_for_default_type(clients: _RecordingClients) -> None:
    config = make_stdio_config(args=["-y", "server"], env={"TOKEN": "secret"})

    async with open_transport(config) as (read, write):
        assert (read, write) == ("r", "w")

    [(kind, args, _kwargs)] = clients.calls
    assert kind == "stdio"
    [params] = args
    assert params.command == "npx"
    assert params.args == ["-y", "server"]
    assert params.env["TOKEN"] == "secret"
