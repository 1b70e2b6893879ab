"""
Aggregation of decoded protocol events into one reply.

The aggregator owns the partial reply of one exchange, applies
append/replace semantics and turns events into caller-visible chunks.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from poe_client.errors import ServiceError, classify
from poe_client.telemetry import get_logger
from poe_client.types.chunk import StreamChunk
from poe_client.types.events import Done, Error, Meta, Replace, Suggestion, TextDelta

if TYPE_CHECKING:
    from poe_client.types.events import ProtocolEvent

logger = get_logger(__name__)

DEFAULT_DIAGNOSTIC_KEYS: frozenset[str] = frozenset(
    {
        "content_type",
        "linkify",
        "suggested_replies",
        "refetch_settings",
        "model",
        "capabilities",
        "usage",
    }
)
"""Meta keys kept in FinalReply.metadata; keys starting with 'debug' are kept too."""


@dataclass
class PartialReply:
    """Mutable accumulator for the reply text.

    Attributes:
        text: Text of the current epoch
        epoch: Number of replace events applied
    """

    text: str = ""
    epoch: int = 0

    def append(self, text: str) -> None:
        """Append text to the current epoch."""
        self.text += text

    def replace(self, text: str) -> None:
        """Discard the current epoch and start a new one."""
        self.text = text
        self.epoch += 1


class StreamAggregator:
    """Consumes events in arrival order and yields caller chunks.

    Example:
        >>> aggregator = StreamAggregator()
        >>> for event in decoder.feed(chunk):
        ...     if (out := aggregator.feed(event)) is not None:
        ...         render(out)
        >>> aggregator.finished
        True
    """

    def __init__(self, diagnostic_keys: frozenset[str] | None = None) -> None:
        """Initialize the aggregator.

        Args:
            diagnostic_keys: Meta keys to keep as reply metadata
        """
        self._diagnostic_keys = (
            DEFAULT_DIAGNOSTIC_KEYS if diagnostic_keys is None else diagnostic_keys
        )
        self._partial = PartialReply()
        self._suggestions: list[str] = []
        self._metadata: dict[str, Any] = {}
        self._finished = False
        self._halted = False

    @property
    def partial(self) -> PartialReply:
        """Current partial reply."""
        return self._partial

    @property
    def suggestions(self) -> tuple[str, ...]:
        """Suggested follow-ups received so far."""
        return tuple(self._suggestions)

    @property
    def metadata(self) -> dict[str, Any]:
        """Diagnostic metadata received so far."""
        return dict(self._metadata)

    @property
    def finished(self) -> bool:
        """Check if the done event has been applied."""
        return self._finished

    @property
    def terminated(self) -> bool:
        """Check if no further events will be processed."""
        return self._finished or self._halted

    def feed(self, event: ProtocolEvent) -> StreamChunk | None:
        """Apply one event.

        Args:
            event: Next decoded event

        Returns:
            Chunk for the caller, or None if the event produces no output

        Raises:
            ServiceError: For an error event; aggregation halts
        """
        if self.terminated:
            logger.debug("Ignoring event after terminal event", event_type=event.type)
            return None

        if isinstance(event, TextDelta):
            if not event.text:
                return None
            self._partial.append(event.text)
            return StreamChunk.delta(event.text)

        if isinstance(event, Replace):
            self._partial.replace(event.text)
            return StreamChunk.reset(event.text)

        if isinstance(event, Suggestion):
            self._suggestions.append(event.text)
            return None

        if isinstance(event, Meta):
            if self._is_diagnostic(event.key):
                self._metadata[event.key] = event.value
            return None

        if isinstance(event, Error):
            self._halted = True
            raise ServiceError(classify(event.code, event.detail))

        if isinstance(event, Done):
            self._finished = True
            return None

        raise TypeError(f"Unsupported event type: {type(event).__name__}")

    def _is_diagnostic(self, key: str) -> bool:
        return key in self._diagnostic_keys or key.startswith("debug")
