"""Tests for transport module."""

import json

import httpx
import pytest

from poe_client.errors import RemoteError, TransportError
from poe_client.transport import ChatTransport, HttpTransport, get_auth_header, resolve_api_key
from poe_client.types import Message, QueryRequest


class TestResolveApiKey:
    """Tests for API key resolution."""

    def test_explicit_key(self, monkeypatch) -> None:
        """Test explicit API key takes precedence."""
        monkeypatch.setenv("POE_API_KEY", "env-key")
        assert resolve_api_key("explicit-key") == "explicit-key"

    def test_env_variable(self, monkeypatch) -> None:
        monkeypatch.setenv("POE_API_KEY", "env-key")
        assert resolve_api_key() == "env-key"

    def test_keyring_fallback(self, monkeypatch) -> None:
        monkeypatch.setattr("poe_client.transport.auth._try_keyring", lambda: "ring-key")
        assert resolve_api_key() == "ring-key"

    def test_no_key_found(self) -> None:
        assert resolve_api_key() is None


class TestGetAuthHeader:
    """Tests for auth header generation."""

    def test_bearer_auth(self) -> None:
        assert get_auth_header("test-key") == {"Authorization": "Bearer test-key"}

    def test_no_key(self) -> None:
        assert get_auth_header() == {}


class TestHttpTransportConfig:
    """Tests for HttpTransport settings."""

    def test_defaults(self) -> None:
        transport = HttpTransport()
        assert transport.base_url == "https://api.poe.com"
        assert transport.timeout == 120.0
        assert transport.has_api_key is False

    def test_env_overrides(self, monkeypatch) -> None:
        monkeypatch.setenv("POE_BASE_URL", "https://proxy.example.com/")
        monkeypatch.setenv("POE_HTTP_TIMEOUT_SECS", "45")
        transport = HttpTransport()
        assert transport.base_url == "https://proxy.example.com"
        assert transport.timeout == 45.0

    def test_explicit_wins_over_env(self, monkeypatch) -> None:
        monkeypatch.setenv("POE_HTTP_TIMEOUT_SECS", "45")
        assert HttpTransport(timeout=10).timeout == 10

    def test_invalid_env_timeout(self, monkeypatch) -> None:
        monkeypatch.setenv("POE_HTTP_TIMEOUT_SECS", "soon")
        assert HttpTransport().timeout == 120.0

    def test_satisfies_protocol(self) -> None:
        assert isinstance(HttpTransport(), ChatTransport)


def _request() -> QueryRequest:
    return QueryRequest(query=[Message.user("Hello")], user_id="u-1")


class TestHttpTransportStreaming:
    """Tests for stream_query()."""

    @pytest.mark.asyncio
    async def test_stream_query(self, httpx_mock) -> None:
        body = b'event: text\ndata: {"text": "Hi"}\n\nevent: done\ndata: {}\n\n'
        httpx_mock.add_response(
            method="POST",
            url="https://api.poe.com/bot/GPT-4o",
            content=body,
            headers={"Content-Type": "text/event-stream"},
        )

        async with HttpTransport(api_key="test-key") as transport:
            async with transport.stream_query("GPT-4o", _request()) as chunks:
                data = b"".join([chunk async for chunk in chunks])

        assert data == body
        sent = httpx_mock.get_requests()[0]
        assert sent.headers["Authorization"] == "Bearer test-key"
        assert sent.headers["Accept"] == "text/event-stream"
        payload = json.loads(sent.content)
        assert payload["type"] == "query"
        assert payload["query"][0]["content"] == "Hello"

    @pytest.mark.asyncio
    async def test_stream_query_error_status(self, httpx_mock) -> None:
        httpx_mock.add_response(
            method="POST",
            url="https://api.poe.com/bot/Nope",
            status_code=404,
            json={"error": {"message": "Bot not found", "type": "not_found"}},
        )

        async with HttpTransport(api_key="test-key") as transport:
            with pytest.raises(RemoteError) as exc_info:
                async with transport.stream_query("Nope", _request()):
                    pass

        assert exc_info.value.status_code == 404
        assert exc_info.value.message == "Bot not found"

    @pytest.mark.asyncio
    async def test_stream_query_connect_error(self, httpx_mock) -> None:
        httpx_mock.add_exception(httpx.ConnectError("refused"))

        async with HttpTransport(api_key="test-key") as transport:
            with pytest.raises(TransportError) as exc_info:
                async with transport.stream_query("GPT-4o", _request()):
                    pass

        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
        assert exc_info.value.url == "https://api.poe.com/bot/GPT-4o"


class TestHttpTransportEndpoints:
    """Tests for the catalog and upload endpoints."""

    @pytest.mark.asyncio
    async def test_fetch_models(self, httpx_mock) -> None:
        httpx_mock.add_response(
            method="GET",
            url="https://api.poe.com/v1/models",
            json={"object": "list", "data": [{"id": "GPT-4o"}, {"id": "Claude-3.5-Sonnet"}]},
        )

        async with HttpTransport(api_key="test-key") as transport:
            entries = await transport.fetch_models()

        assert [e["id"] for e in entries] == ["GPT-4o", "Claude-3.5-Sonnet"]

    @pytest.mark.asyncio
    async def test_fetch_models_rate_limited(self, httpx_mock) -> None:
        httpx_mock.add_response(
            method="GET",
            url="https://api.poe.com/v1/models",
            status_code=429,
            headers={"Retry-After": "4"},
            json={"error": {"message": "Too many requests"}},
        )

        async with HttpTransport(api_key="test-key") as transport:
            with pytest.raises(RemoteError) as exc_info:
                await transport.fetch_models()

        assert exc_info.value.retry_after == 4.0

    @pytest.mark.asyncio
    async def test_upload_file(self, httpx_mock, tmp_path) -> None:
        httpx_mock.add_response(
            method="POST",
            url="https://www.quora.com/poe_api/file_upload_3RD_PARTY_POST",
            json={"attachment_url": "https://files.example.com/notes.txt", "mime_type": "text/plain"},
        )
        path = tmp_path / "notes.txt"
        path.write_text("remember the milk")

        async with HttpTransport(api_key="test-key") as transport:
            attachment = await transport.upload_file(path)

        assert attachment.url == "https://files.example.com/notes.txt"
        assert attachment.content_type == "text/plain"
        assert attachment.name == "notes.txt"
        sent = httpx_mock.get_requests()[0]
        assert sent.headers["Authorization"] == "test-key"
        assert b"remember the milk" in sent.content

    @pytest.mark.asyncio
    async def test_upload_by_url(self, httpx_mock) -> None:
        httpx_mock.add_response(
            method="POST",
            url="https://www.quora.com/poe_api/file_upload_3RD_PARTY_POST",
            json={"attachment_url": "https://files.example.com/cat.png", "mime_type": "image/png"},
        )

        async with HttpTransport(api_key="test-key") as transport:
            attachment = await transport.upload_file(url="https://example.com/cat.png")

        assert attachment.name == "cat.png"
        assert attachment.content_type == "image/png"

    @pytest.mark.asyncio
    async def test_upload_needs_one_source(self) -> None:
        transport = HttpTransport(api_key="test-key")
        with pytest.raises(ValueError):
            await transport.upload_file()
        with pytest.raises(ValueError):
            await transport.upload_file("a.txt", url="https://example.com/a.txt")
