"""
Outbound query body for one exchange.
"""

from __future__ import annotations

import uuid
from typing import Any, Literal

from pydantic import BaseModel, Field

from poe_client.types.message import Message

PROTOCOL_VERSION = "1.1"


def _new_id() -> str:
    return uuid.uuid4().hex


class QueryRequest(BaseModel):
    """Request body for a bot query.

    Attributes:
        query: Conversation so far, ending with the new message
        user_id: Opaque caller identifier
        conversation_id: Identifier grouping exchanges of one conversation
        message_id: Identifier of this exchange
        temperature: Optional sampling temperature
        stop_sequences: Optional sequences that end generation
    """

    version: str = PROTOCOL_VERSION
    type: Literal["query"] = "query"
    query: list[Message] = Field(min_length=1)
    user_id: str = ""
    conversation_id: str = Field(default_factory=_new_id)
    message_id: str = Field(default_factory=_new_id)
    temperature: float | None = None
    stop_sequences: list[str] | None = None

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the JSON body sent to the service."""
        payload: dict[str, Any] = {
            "version": self.version,
            "type": self.type,
            "query": [m.to_wire() for m in self.query],
            "user_id": self.user_id,
            "conversation_id": self.conversation_id,
            "message_id": self.message_id,
        }
        if self.temperature is not None:
            payload["temperature"] = self.temperature
        if self.stop_sequences:
            payload["stop_sequences"] = list(self.stop_sequences)
        return payload
