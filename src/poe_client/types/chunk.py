"""
Caller-visible chunks of a reply stream.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ChunkKind(str, Enum):
    """Kind of caller-visible stream chunk."""

    DELTA = "delta"
    """Text to append to what was rendered so far."""

    RESET = "reset"
    """New full text; clear what was rendered and redraw."""


@dataclass(frozen=True)
class StreamChunk:
    """One item of a reply stream.

    Attributes:
        kind: Whether to append or redraw
        text: Delta text, or the full new text for a reset
    """

    kind: ChunkKind
    text: str

    @classmethod
    def delta(cls, text: str) -> StreamChunk:
        """Create a delta chunk."""
        return cls(ChunkKind.DELTA, text)

    @classmethod
    def reset(cls, text: str) -> StreamChunk:
        """Create a reset chunk."""
        return cls(ChunkKind.RESET, text)

    @property
    def is_reset(self) -> bool:
        """Check if the caller should clear and redraw."""
        return self.kind is ChunkKind.RESET
