"""
Error hierarchy and classification for poe-client-python.
"""

from poe_client.errors.base import (
    ErrorContext,
    PipelineError,
    PoeError,
    RemoteError,
    ServiceError,
    TransportError,
    UsageError,
)
from poe_client.errors.classification import (
    DEFAULT_RETRY_AFTER,
    ClassifiedError,
    ErrorCategory,
    ErrorKind,
    classify,
    classify_failure,
    classify_http_status,
    parse_retry_after,
)

__all__ = [
    "DEFAULT_RETRY_AFTER",
    "ClassifiedError",
    "ErrorCategory",
    "ErrorContext",
    "ErrorKind",
    "PipelineError",
    "PoeError",
    "RemoteError",
    "ServiceError",
    "TransportError",
    "UsageError",
    "classify",
    "classify_failure",
    "classify_http_status",
    "parse_retry_after",
]
