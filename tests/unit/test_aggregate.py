"""Tests for the stream aggregator."""

import pytest

from poe_client.errors import ErrorKind, ServiceError
from poe_client.pipeline import StreamAggregator
from poe_client.types import ChunkKind, StreamChunk
from poe_client.types.events import Done, Error, Meta, Replace, Suggestion, TextDelta


def _feed_all(aggregator: StreamAggregator, events: list) -> list[StreamChunk]:
    chunks = []
    for event in events:
        chunk = aggregator.feed(event)
        if chunk is not None:
            chunks.append(chunk)
    return chunks


class TestStreamAggregator:
    """Tests for StreamAggregator."""

    def test_deltas_concatenate(self) -> None:
        """Test delta chunks add up to the reply text without replaces."""
        aggregator = StreamAggregator()
        chunks = _feed_all(
            aggregator,
            [TextDelta(text="Hel"), TextDelta(text="lo, "), TextDelta(text="world"), Done()],
        )

        assert "".join(c.text for c in chunks) == "Hello, world"
        assert aggregator.partial.text == "Hello, world"
        assert aggregator.partial.epoch == 0
        assert aggregator.finished is True

    def test_replace_starts_new_epoch(self) -> None:
        """Test replace discards earlier text."""
        aggregator = StreamAggregator()
        chunks = _feed_all(
            aggregator,
            [TextDelta(text="ab"), Replace(text="x"), TextDelta(text="y"), Done()],
        )

        assert chunks == [
            StreamChunk.delta("ab"),
            StreamChunk.reset("x"),
            StreamChunk.delta("y"),
        ]
        assert chunks[1].kind is ChunkKind.RESET
        assert aggregator.partial.text == "xy"
        assert aggregator.partial.epoch == 1

    def test_empty_delta_yields_nothing(self) -> None:
        aggregator = StreamAggregator()
        assert aggregator.feed(TextDelta(text="")) is None
        assert aggregator.partial.text == ""

    def test_suggestions_buffered_in_order(self) -> None:
        """Test suggestions are kept, not emitted."""
        aggregator = StreamAggregator()
        assert aggregator.feed(Suggestion(text="One")) is None
        assert aggregator.feed(Suggestion(text="Two")) is None
        assert aggregator.suggestions == ("One", "Two")

    def test_meta_filtering(self) -> None:
        """Test only diagnostic keys are kept."""
        aggregator = StreamAggregator()
        _feed_all(
            aggregator,
            [
                Meta(key="content_type", value="text/markdown"),
                Meta(key="debug_latency", value=12),
                Meta(key="heartbeat", value=1),
            ],
        )
        assert aggregator.metadata == {"content_type": "text/markdown", "debug_latency": 12}

    def test_custom_diagnostic_keys(self) -> None:
        aggregator = StreamAggregator(diagnostic_keys=frozenset({"heartbeat"}))
        aggregator.feed(Meta(key="heartbeat", value=1))
        aggregator.feed(Meta(key="content_type", value="text/plain"))
        assert aggregator.metadata == {"heartbeat": 1}

    def test_error_halts(self) -> None:
        """Test an error event raises and stops aggregation."""
        aggregator = StreamAggregator()
        aggregator.feed(TextDelta(text="partial"))

        with pytest.raises(ServiceError) as exc_info:
            aggregator.feed(Error(code="429", detail="retry_after=5"))

        assert exc_info.value.kind is ErrorKind.RATE_LIMITED
        assert exc_info.value.retry_after == 5.0
        assert aggregator.terminated is True
        assert aggregator.finished is False
        assert aggregator.partial.text == "partial"

    def test_events_after_done_ignored(self) -> None:
        """Test nothing changes once done has been applied."""
        aggregator = StreamAggregator()
        _feed_all(aggregator, [TextDelta(text="final"), Done()])

        assert aggregator.feed(TextDelta(text=" extra")) is None
        assert aggregator.feed(Replace(text="other")) is None
        assert aggregator.feed(Error(code="500")) is None
        assert aggregator.partial.text == "final"

    def test_events_after_error_ignored(self) -> None:
        aggregator = StreamAggregator()
        with pytest.raises(ServiceError):
            aggregator.feed(Error(code="bot_error", detail="boom"))
        assert aggregator.feed(TextDelta(text="late")) is None
        assert aggregator.feed(Done()) is None
        assert aggregator.finished is False
