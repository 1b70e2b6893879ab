"""Tests for the client facade and builder."""

import pytest

from poe_client import PoeClient, PoeClientBuilder
from poe_client.client import BotCatalog, ChatSession, SessionState
from poe_client.pipeline import LineFrameDecoder, PoeSSEDecoder
from poe_client.transport import HttpTransport
from poe_client.types import Message


class TestPoeClient:
    """Tests for PoeClient."""

    def test_unknown_stream_format(self, fake_transport_cls) -> None:
        with pytest.raises(ValueError):
            PoeClient(fake_transport_cls(), stream_format="xml")

    def test_session_is_fresh(self, fake_transport_cls) -> None:
        client = PoeClient(fake_transport_cls())
        first = client.session("GPT-4o")
        second = client.session("GPT-4o")

        assert isinstance(first, ChatSession)
        assert first is not second
        assert first.state is SessionState.IDLE
        assert first.bot == "GPT-4o"

    @pytest.mark.asyncio
    async def test_chat_sse(self, fake_transport_cls, sse_event) -> None:
        transport = fake_transport_cls(
            [
                sse_event("text", '{"text": "Hi "}'),
                sse_event("text", '{"text": "there"}'),
                sse_event("suggested_reply", '{"text": "How are you?"}'),
                sse_event("done"),
            ]
        )
        client = PoeClient(transport)

        reply = await client.chat("GPT-4o", Message.user("Hello"))

        assert reply.text == "Hi there"
        assert reply.suggestions == ("How are you?",)
        assert transport.requests[0][0] == "GPT-4o"

    @pytest.mark.asyncio
    async def test_stream_lines(self, fake_transport_cls) -> None:
        transport = fake_transport_cls([b"ev:delta txt:a\n", b"ev:delta txt:b\nev:done\n"])
        client = PoeClient(transport, stream_format="lines")

        stream = client.stream("GPT-4o", Message.user("Hello"))
        texts = [chunk.text async for chunk in stream]

        assert texts == ["a", "b"]
        assert stream.session.result().text == "ab"

    @pytest.mark.asyncio
    async def test_diagnostic_keys(self, fake_transport_cls) -> None:
        transport = fake_transport_cls([b"ev:meta key:trace txt:t-1\nev:meta key:model txt:x\nev:done\n"])
        client = PoeClient(transport, stream_format="lines", diagnostic_keys=frozenset({"trace"}))

        reply = await client.chat("GPT-4o", Message.user("Hello"))
        assert reply.metadata == {"trace": "t-1"}

    @pytest.mark.asyncio
    async def test_list_bots(self, fake_transport_cls) -> None:
        client = PoeClient(fake_transport_cls(models=[{"id": "GPT-4o"}]))
        bots = await client.list_bots()

        assert [b.id for b in bots] == ["GPT-4o"]
        assert isinstance(client.catalog(), BotCatalog)
        assert "GPT-4o" in client.catalog()

    @pytest.mark.asyncio
    async def test_upload_requires_support(self, fake_transport_cls) -> None:
        client = PoeClient(fake_transport_cls())
        with pytest.raises(TypeError):
            await client.upload_file(url="https://example.com/a.png")

    @pytest.mark.asyncio
    async def test_context_manager_closes(self, fake_transport_cls) -> None:
        transport = fake_transport_cls()
        async with PoeClient(transport) as client:
            assert client.transport is transport
        assert transport.closed_transport is True

    def test_create_uses_http_transport(self) -> None:
        client = PoeClient.create(api_key="test-key", base_url="https://example.com/", timeout=5)
        transport = client.transport

        assert isinstance(transport, HttpTransport)
        assert transport.base_url == "https://example.com"
        assert transport.timeout == 5
        assert transport.has_api_key


class TestPoeClientBuilder:
    """Tests for PoeClientBuilder."""

    def test_builder_from_client(self) -> None:
        assert isinstance(PoeClient.builder(), PoeClientBuilder)

    def test_build_http(self) -> None:
        client = (
            PoeClientBuilder()
            .api_key("test-key")
            .base_url("https://example.com")
            .timeout(30)
            .stream_format("lines")
            .build()
        )

        assert isinstance(client.transport, HttpTransport)
        assert client.transport.timeout == 30
        assert client.stream_format == "lines"
        assert isinstance(client.session("x")._decoder_factory(), LineFrameDecoder)

    def test_build_custom_transport(self, fake_transport_cls) -> None:
        transport = fake_transport_cls()
        client = PoeClientBuilder().transport(transport).user_id("u-7").build()

        assert client.transport is transport
        assert isinstance(client.session("x")._decoder_factory(), PoeSSEDecoder)

    def test_invalid_frame_size(self) -> None:
        with pytest.raises(ValueError):
            PoeClientBuilder().max_frame_size(0).build()

    def test_unknown_format(self, fake_transport_cls) -> None:
        with pytest.raises(ValueError):
            PoeClientBuilder().transport(fake_transport_cls()).stream_format("xml").build()
