"""
Client layer - User-facing API.

This module provides:
- PoeClient: Main entry point for chatting with bots
- PoeClientBuilder: Fluent client configuration
- ChatSession / ReplyStream: One cancellable exchange and its reply stream
- BotCatalog: Available bots
- Cancellation: Exchange cancellation control
"""

from poe_client.client.builder import PoeClientBuilder
from poe_client.client.cancel import CancelReason, CancelState, CancelToken
from poe_client.client.catalog import BotCatalog
from poe_client.client.core import PoeClient, get_model_list
from poe_client.client.response import FinalReply
from poe_client.client.session import ChatSession, ReplyStream, SessionState

__all__ = [
    "BotCatalog",
    "CancelReason",
    "CancelState",
    "CancelToken",
    "ChatSession",
    "FinalReply",
    "PoeClient",
    "PoeClientBuilder",
    "ReplyStream",
    "SessionState",
    "get_model_list",
]
