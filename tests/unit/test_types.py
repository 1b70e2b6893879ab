"""Tests for type definitions."""

import pytest
from pydantic import ValidationError

from poe_client.client import FinalReply
from poe_client.types import (
    PROTOCOL_VERSION,
    Attachment,
    BotInfo,
    ChunkKind,
    Done,
    Message,
    MessageRole,
    Meta,
    QueryRequest,
    StreamChunk,
    TextDelta,
    parse_event,
)


class TestMessage:
    """Tests for Message."""

    def test_constructors(self) -> None:
        assert Message.user("hi").role is MessageRole.USER
        assert Message.bot("hello").role is MessageRole.BOT
        assert Message.system("be brief").role is MessageRole.SYSTEM

    def test_to_wire(self) -> None:
        assert Message.user("hi").to_wire() == {
            "role": "user",
            "content": "hi",
            "content_type": "text/markdown",
        }

    def test_to_wire_with_attachment(self) -> None:
        attachment = Attachment(url="https://files/a.png", content_type="image/png", name="a.png")
        wire = Message.user("look", attachments=[attachment]).to_wire()
        assert wire["attachments"] == [
            {"url": "https://files/a.png", "content_type": "image/png", "name": "a.png"}
        ]

    def test_frozen(self) -> None:
        message = Message.user("hi")
        with pytest.raises(ValidationError):
            message.content = "changed"


class TestQueryRequest:
    """Tests for QueryRequest."""

    def test_payload(self) -> None:
        request = QueryRequest(query=[Message.user("hi")], user_id="u-1")
        payload = request.to_payload()

        assert payload["version"] == PROTOCOL_VERSION
        assert payload["type"] == "query"
        assert payload["query"] == [Message.user("hi").to_wire()]
        assert payload["user_id"] == "u-1"
        assert len(payload["message_id"]) == 32
        assert "temperature" not in payload
        assert "stop_sequences" not in payload

    def test_options(self) -> None:
        request = QueryRequest(
            query=[Message.user("hi")], temperature=0.5, stop_sequences=["END"]
        )
        payload = request.to_payload()
        assert payload["temperature"] == 0.5
        assert payload["stop_sequences"] == ["END"]

    def test_fresh_ids(self) -> None:
        first = QueryRequest(query=[Message.user("a")])
        second = QueryRequest(query=[Message.user("a")])
        assert first.message_id != second.message_id

    def test_empty_query_rejected(self) -> None:
        with pytest.raises(ValidationError):
            QueryRequest(query=[])


class TestBotInfo:
    """Tests for BotInfo."""

    def test_from_api(self) -> None:
        bot = BotInfo.from_api(
            {
                "id": "Gemini",
                "name": "Gemini Pro",
                "architecture": {"input_modalities": ["text", "video"], "output_modalities": ["text"]},
            }
        )
        assert bot.display_name == "Gemini Pro"
        assert bot.capabilities == frozenset({"text_input", "video_input", "text_output"})

    def test_display_name_fallback(self) -> None:
        assert BotInfo.from_api({"id": "Solar"}).display_name == "Solar"


class TestEvents:
    """Tests for protocol events."""

    def test_parse_event(self) -> None:
        assert parse_event({"type": "text_delta", "text": "a"}) == TextDelta(text="a")
        assert parse_event({"type": "done"}) == Done()
        assert parse_event({"type": "meta", "key": "k", "value": 1}) == Meta(key="k", value=1)

    def test_unknown_type_rejected(self) -> None:
        with pytest.raises(ValidationError):
            parse_event({"type": "bogus"})

    def test_frozen(self) -> None:
        event = TextDelta(text="a")
        with pytest.raises(ValidationError):
            event.text = "b"


class TestChunksAndReplies:
    """Tests for StreamChunk and FinalReply."""

    def test_chunk_kinds(self) -> None:
        assert StreamChunk.delta("a").kind is ChunkKind.DELTA
        assert StreamChunk.reset("b").is_reset is True
        assert StreamChunk.delta("a") == StreamChunk.delta("a")

    def test_final_reply_to_message(self) -> None:
        reply = FinalReply(text="Answer", suggestions=("More?",), bot="GPT-4o")
        message = reply.to_message()
        assert message.role is MessageRole.BOT
        assert message.content == "Answer"
        assert reply.was_replaced is False
