"""Tests for the bot catalog."""

import pytest

from poe_client.client import BotCatalog
from poe_client.errors import ErrorKind, RemoteError, ServiceError

MODELS = [
    {
        "id": "GPT-4o",
        "object": "model",
        "created": 1715367049,
        "owned_by": "OpenAI",
        "description": "Flagship model",
        "architecture": {
            "input_modalities": ["text", "image"],
            "output_modalities": ["text"],
        },
    },
    {"id": "Claude-3.5-Sonnet", "owned_by": "Anthropic"},
]


class TestBotCatalog:
    """Tests for BotCatalog."""

    @pytest.mark.asyncio
    async def test_list_in_server_order(self, fake_transport_cls) -> None:
        catalog = BotCatalog(fake_transport_cls(models=MODELS))
        bots = await catalog.list()

        assert [b.id for b in bots] == ["GPT-4o", "Claude-3.5-Sonnet"]
        assert bots[0].supports("image_input")
        assert bots[0].supports("text_output")
        assert not bots[1].supports("image_input")
        assert bots[1].display_name == "Claude-3.5-Sonnet"

    @pytest.mark.asyncio
    async def test_empty_catalog(self, fake_transport_cls) -> None:
        """Test zero entries give an empty list, not an error."""
        catalog = BotCatalog(fake_transport_cls(models=[]))
        assert await catalog.list() == []
        assert len(catalog) == 0

    @pytest.mark.asyncio
    async def test_lookup_table(self, fake_transport_cls) -> None:
        catalog = BotCatalog(fake_transport_cls(models=MODELS))
        assert catalog.get("GPT-4o") is None

        await catalog.list()

        assert "GPT-4o" in catalog
        assert "Unknown" not in catalog
        assert catalog.get("GPT-4o").owned_by == "OpenAI"
        assert len(catalog) == 2
        assert [b.id for b in catalog] == ["GPT-4o", "Claude-3.5-Sonnet"]

    @pytest.mark.asyncio
    async def test_refresh_replaces_table(self, fake_transport_cls) -> None:
        """Test each fetch replaces the table wholesale."""
        transport = fake_transport_cls(models=MODELS)
        catalog = BotCatalog(transport)
        await catalog.list()

        transport.models = [{"id": "Llama-3"}]
        await catalog.list()

        assert "GPT-4o" not in catalog
        assert len(catalog) == 1

    @pytest.mark.asyncio
    async def test_fetch_failure_classified(self, fake_transport_cls) -> None:
        transport = fake_transport_cls(open_error=RemoteError.from_response(401, {"error": "bad key"}))
        catalog = BotCatalog(transport)

        with pytest.raises(ServiceError) as exc_info:
            await catalog.list()
        assert exc_info.value.kind is ErrorKind.AUTH_FAILED

    @pytest.mark.asyncio
    async def test_malformed_entry(self, fake_transport_cls) -> None:
        catalog = BotCatalog(fake_transport_cls(models=[{"name": "no id"}]))

        with pytest.raises(ServiceError) as exc_info:
            await catalog.list()
        assert exc_info.value.kind is ErrorKind.MALFORMED_STREAM
