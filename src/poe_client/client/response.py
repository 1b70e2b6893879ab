"""
Response types for client operations.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from poe_client.types.message import Message


@dataclass(frozen=True)
class FinalReply:
    """Completed reply of one exchange.

    Attributes:
        text: Final reply text
        suggestions: Suggested follow-up messages, in arrival order
        bot: Bot that produced the reply
        duration: Seconds from send to the done event
        metadata: Diagnostic metadata reported by the bot
        epochs: Number of replace events seen
    """

    text: str
    suggestions: tuple[str, ...] = ()
    bot: str = ""
    duration: float = 0.0
    metadata: dict[str, Any] = field(default_factory=dict)
    epochs: int = 0

    def to_message(self) -> Message:
        """Convert the reply to a bot message for the next exchange."""
        return Message.bot(self.text)

    @property
    def was_replaced(self) -> bool:
        """Check if the bot replaced its text at least once."""
        return self.epochs > 0
