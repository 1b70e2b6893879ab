"""
Base abstractions for the pipeline layer.

A Decoder turns an arbitrarily chunked byte stream into ProtocolEvents.
It is push-driven (``feed``/``finish``) so a session can interleave
decoding with cancellation checks, and also offers an async-iterator
adapter (``decode``) for straightforward consumption.
"""

from __future__ import annotations

import codecs
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, ClassVar

from poe_client.errors import PipelineError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from poe_client.types.events import ProtocolEvent

DEFAULT_MAX_FRAME_SIZE = 1024 * 1024
"""Largest fragment (in characters) buffered while waiting for a delimiter."""


class Decoder(ABC):
    """Abstract frame decoder.

    Subclasses define the frame delimiter and how one frame parses into
    events. The base class owns buffering: incomplete trailing fragments,
    including split UTF-8 sequences, are kept until the next ``feed``.

    A decoder belongs to exactly one exchange and is never reused.

    Attributes:
        name: Format name used by create_decoder
        delimiter: Frame delimiter after line-ending normalisation
    """

    name: ClassVar[str]
    delimiter: ClassVar[str]

    def __init__(self, max_frame_size: int = DEFAULT_MAX_FRAME_SIZE) -> None:
        """Initialize the decoder.

        Args:
            max_frame_size: Bounded buffering window; a fragment longer than
                this without a delimiter is treated as malformed
        """
        self._max_frame_size = max_frame_size
        self._buffer = ""
        self._text = codecs.getincrementaldecoder("utf-8")()

    @property
    def buffered(self) -> int:
        """Number of characters waiting for a delimiter."""
        return len(self._buffer)

    def feed(self, chunk: bytes) -> list[ProtocolEvent]:
        """Decode one chunk of bytes.

        Args:
            chunk: Raw bytes, with arbitrary boundaries

        Returns:
            Events for every frame completed by this chunk, in order

        Raises:
            PipelineError: If a frame is malformed, outgrows the window or
                holds invalid UTF-8
        """
        try:
            self._buffer += self._text.decode(chunk)
        except UnicodeDecodeError as e:
            raise self._malformed(f"Invalid UTF-8 in stream: {e.reason}", self._buffer) from e
        if "\r" in self._buffer:
            self._buffer = self._buffer.replace("\r\n", "\n")

        events: list[ProtocolEvent] = []
        while True:
            index = self._buffer.find(self.delimiter)
            if index < 0:
                break
            frame = self._buffer[:index]
            self._buffer = self._buffer[index + len(self.delimiter) :]
            if frame.strip():
                events.extend(self._parse_frame(frame))

        if len(self._buffer) > self._max_frame_size:
            raise PipelineError(
                f"Frame exceeds {self._max_frame_size} characters without a delimiter",
                operator=self.name,
                frame=self._buffer,
            )
        return events

    def finish(self) -> list[ProtocolEvent]:
        """Flush the trailing fragment at end of stream.

        Returns:
            Events parsed from the trailing fragment, if any

        Raises:
            PipelineError: If the trailing fragment is malformed
        """
        try:
            self._buffer += self._text.decode(b"", final=True)
        except UnicodeDecodeError as e:
            raise self._malformed(
                f"Stream ends inside a UTF-8 sequence: {e.reason}", self._buffer
            ) from e
        frame, self._buffer = self._buffer.replace("\r\n", "\n"), ""
        if not frame.strip():
            return []
        return self._parse_frame(frame)

    async def decode(
        self, byte_stream: AsyncIterator[bytes]
    ) -> AsyncIterator[ProtocolEvent]:
        """Decode a whole byte stream.

        Args:
            byte_stream: Async iterator of raw bytes

        Yields:
            Protocol events in arrival order
        """
        async for chunk in byte_stream:
            for event in self.feed(chunk):
                yield event
        for event in self.finish():
            yield event

    @abstractmethod
    def _parse_frame(self, frame: str) -> list[ProtocolEvent]:
        """Parse one complete frame.

        Args:
            frame: Frame text without its delimiter

        Returns:
            Zero or more events

        Raises:
            PipelineError: If the frame cannot be parsed
        """
        ...

    def _malformed(self, message: str, frame: str) -> PipelineError:
        return PipelineError(message, operator=self.name, frame=frame)
