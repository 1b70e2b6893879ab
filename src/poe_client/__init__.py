"""
poe-client-python: Async client for chatting with bots on Poe.

Streams replies as incremental chunks, classifies every failure into a
small closed set of kinds, and supports cooperative cancellation of each
exchange.
"""

from __future__ import annotations

from poe_client.client import (
    BotCatalog,
    CancelReason,
    CancelToken,
    ChatSession,
    FinalReply,
    PoeClient,
    PoeClientBuilder,
    ReplyStream,
    SessionState,
    get_model_list,
)
from poe_client.errors import (
    ClassifiedError,
    ErrorKind,
    PipelineError,
    PoeError,
    RemoteError,
    ServiceError,
    TransportError,
    UsageError,
    classify,
)
from poe_client.types import (
    Attachment,
    BotInfo,
    ChunkKind,
    Message,
    MessageRole,
    StreamChunk,
)

__version__ = "0.1.0"

__all__ = [
    # Client
    "BotCatalog",
    "CancelReason",
    "CancelToken",
    "ChatSession",
    "FinalReply",
    "PoeClient",
    "PoeClientBuilder",
    "ReplyStream",
    "SessionState",
    "get_model_list",
    # Errors
    "ClassifiedError",
    "ErrorKind",
    "PipelineError",
    "PoeError",
    "RemoteError",
    "ServiceError",
    "TransportError",
    "UsageError",
    "classify",
    # Types
    "Attachment",
    "BotInfo",
    "ChunkKind",
    "Message",
    "MessageRole",
    "StreamChunk",
    # Version
    "__version__",
]
