"""
Pipeline layer - Stream processing operators.

- Decoder: Parses raw bytes into protocol events (SSE, line frames)
- StreamAggregator: Folds events into caller chunks and a final reply
"""

from poe_client.pipeline.aggregate import (
    DEFAULT_DIAGNOSTIC_KEYS,
    PartialReply,
    StreamAggregator,
)
from poe_client.pipeline.base import DEFAULT_MAX_FRAME_SIZE, Decoder
from poe_client.pipeline.decode import (
    DECODERS,
    LineFrameDecoder,
    PoeSSEDecoder,
    create_decoder,
)

__all__ = [
    "DECODERS",
    "DEFAULT_DIAGNOSTIC_KEYS",
    "DEFAULT_MAX_FRAME_SIZE",
    "Decoder",
    "LineFrameDecoder",
    "PartialReply",
    "PoeSSEDecoder",
    "StreamAggregator",
    "create_decoder",
]
