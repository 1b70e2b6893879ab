"""Root pytest fixtures for poe-client-python tests."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

import pytest

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from poe_client.types.request import QueryRequest


class FakeTransport:
    """In-memory transport that replays byte chunks.

    Items in ``chunks`` are yielded in order; an exception instance is
    raised instead of yielded. With ``hang=True`` the stream stays open
    after the last chunk until it is cancelled. ``open_delay`` and
    ``close_delay`` slow down entering and leaving the stream; ``closing``
    is set as soon as the stream starts to close.
    """

    def __init__(
        self,
        chunks: list[bytes | BaseException] | None = None,
        *,
        models: list[dict[str, Any]] | None = None,
        open_error: BaseException | None = None,
        hang: bool = False,
        open_delay: float = 0.0,
        close_delay: float = 0.0,
    ) -> None:
        self.chunks = list(chunks or [])
        self.models = models or []
        self.open_error = open_error
        self.hang = hang
        self.open_delay = open_delay
        self.close_delay = close_delay
        self.closing = asyncio.Event()
        self.requests: list[tuple[str, QueryRequest]] = []
        self.opened = 0
        self.closed = 0
        self.closed_transport = False

    @asynccontextmanager
    async def stream_query(
        self, bot: str, request: QueryRequest
    ) -> AsyncIterator[AsyncIterator[bytes]]:
        self.requests.append((bot, request))
        if self.open_delay:
            await asyncio.sleep(self.open_delay)
        if self.open_error is not None:
            raise self.open_error
        self.opened += 1
        try:
            yield self._iterate()
        finally:
            self.closing.set()
            if self.close_delay:
                await asyncio.sleep(self.close_delay)
            self.closed += 1

    async def _iterate(self) -> AsyncIterator[bytes]:
        for chunk in self.chunks:
            if isinstance(chunk, BaseException):
                raise chunk
            yield chunk
        if self.hang:
            await asyncio.Event().wait()

    async def fetch_models(self) -> list[dict[str, Any]]:
        if isinstance(self.open_error, BaseException):
            raise self.open_error
        return list(self.models)

    async def close(self) -> None:
        self.closed_transport = True


def _sse_event(event: str, data: str = "{}") -> bytes:
    return f"event: {event}\ndata: {data}\n\n".encode()


@pytest.fixture
def sse_event() -> Any:
    """Encoder for one server-sent event: sse_event("text", '{"text": "hi"}')."""
    return _sse_event


@pytest.fixture
def fake_transport_cls() -> type[FakeTransport]:
    """The FakeTransport class, for tests that build their own."""
    return FakeTransport


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep host credentials and proxy settings out of tests."""
    for name in ("POE_API_KEY", "POE_BASE_URL", "POE_HTTP_TIMEOUT_SECS", "POE_HTTP_TRUST_ENV", "POE_PROXY_URL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("poe_client.transport.auth._try_keyring", lambda: None)
