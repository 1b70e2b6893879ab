"""
Type definitions for poe-client-python.
"""

from poe_client.types.bot import BotInfo
from poe_client.types.chunk import ChunkKind, StreamChunk
from poe_client.types.events import (
    Done,
    Error,
    Meta,
    ProtocolEvent,
    Replace,
    Suggestion,
    TextDelta,
    parse_event,
)
from poe_client.types.message import Attachment, Message, MessageRole
from poe_client.types.request import PROTOCOL_VERSION, QueryRequest

__all__ = [
    "PROTOCOL_VERSION",
    "Attachment",
    "BotInfo",
    "ChunkKind",
    "Done",
    "Error",
    "Message",
    "MessageRole",
    "Meta",
    "ProtocolEvent",
    "QueryRequest",
    "Replace",
    "StreamChunk",
    "Suggestion",
    "TextDelta",
    "parse_event",
]
