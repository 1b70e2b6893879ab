"""
Error classification for streamed exchanges and catalog fetches.

Maps raw service error codes, HTTP statuses and transport failures onto
the closed ErrorKind taxonomy. Everything in this module is pure: the
same input always yields an equal ClassifiedError.
"""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

import httpx

from poe_client.errors.base import (
    PipelineError,
    RemoteError,
    ServiceError,
    TransportError,
    extract_error_message,
)

DEFAULT_RETRY_AFTER = 1.0
"""Backoff floor (seconds) for rate limits that carry no parseable delay."""


class ErrorCategory(str, Enum):
    """How a caller is expected to react to an error kind."""

    CALLER_ACTIONABLE = "caller_actionable"
    """Caller must change input, credentials or pacing."""

    TRANSIENT = "transient"
    """Safe to retry with backoff."""

    TERMINAL = "terminal"
    """Not retry-safe without caller intervention."""


class ErrorKind(str, Enum):
    """Closed taxonomy of exchange failures."""

    RATE_LIMITED = "rate_limited"
    """Throttled by the service; carries a retry-after hint."""

    INVALID_BOT = "invalid_bot"
    """The named bot does not exist or is not available."""

    AUTH_FAILED = "auth_failed"
    """Missing, invalid or unfunded credentials."""

    SERVER_ERROR = "server_error"
    """Server-side failure, or an unrecognised error code."""

    MALFORMED_STREAM = "malformed_stream"
    """The response stream violated the wire protocol."""

    CANCELLED = "cancelled"
    """The caller cancelled the exchange."""

    TRANSPORT = "transport"
    """Connection reset, timeout or DNS failure."""

    @property
    def category(self) -> ErrorCategory:
        """Category this kind belongs to."""
        return _CATEGORIES[self]

    @property
    def retryable(self) -> bool:
        """Whether retrying the same request may succeed."""
        return self in _RETRYABLE_KINDS


_CATEGORIES: dict[ErrorKind, ErrorCategory] = {
    ErrorKind.RATE_LIMITED: ErrorCategory.CALLER_ACTIONABLE,
    ErrorKind.INVALID_BOT: ErrorCategory.CALLER_ACTIONABLE,
    ErrorKind.AUTH_FAILED: ErrorCategory.CALLER_ACTIONABLE,
    ErrorKind.SERVER_ERROR: ErrorCategory.TRANSIENT,
    ErrorKind.TRANSPORT: ErrorCategory.TRANSIENT,
    ErrorKind.MALFORMED_STREAM: ErrorCategory.TERMINAL,
    ErrorKind.CANCELLED: ErrorCategory.TERMINAL,
}

_RETRYABLE_KINDS: frozenset[ErrorKind] = frozenset(
    {ErrorKind.RATE_LIMITED, ErrorKind.SERVER_ERROR, ErrorKind.TRANSPORT}
)

# Raw codes are matched after str().strip().lower()
_CODE_MAPPING: dict[str, ErrorKind] = {
    # Rate limiting
    "429": ErrorKind.RATE_LIMITED,
    "rate_limit": ErrorKind.RATE_LIMITED,
    "rate_limited": ErrorKind.RATE_LIMITED,
    "rate_limit_exceeded": ErrorKind.RATE_LIMITED,
    "too_many_requests": ErrorKind.RATE_LIMITED,
    # Credentials and account
    "401": ErrorKind.AUTH_FAILED,
    "402": ErrorKind.AUTH_FAILED,
    "403": ErrorKind.AUTH_FAILED,
    "auth": ErrorKind.AUTH_FAILED,
    "auth_failed": ErrorKind.AUTH_FAILED,
    "authentication": ErrorKind.AUTH_FAILED,
    "authentication_error": ErrorKind.AUTH_FAILED,
    "invalid_api_key": ErrorKind.AUTH_FAILED,
    "unauthorized": ErrorKind.AUTH_FAILED,
    "permission_denied": ErrorKind.AUTH_FAILED,
    "insufficient_fund": ErrorKind.AUTH_FAILED,
    "insufficient_points": ErrorKind.AUTH_FAILED,
    "privacy_authorization_error": ErrorKind.AUTH_FAILED,
    # Bot lookup
    "404": ErrorKind.INVALID_BOT,
    "not_found": ErrorKind.INVALID_BOT,
    "bot_not_found": ErrorKind.INVALID_BOT,
    "invalid_bot": ErrorKind.INVALID_BOT,
    "unknown_bot": ErrorKind.INVALID_BOT,
    "model_not_found": ErrorKind.INVALID_BOT,
    # Server side
    "500": ErrorKind.SERVER_ERROR,
    "502": ErrorKind.SERVER_ERROR,
    "503": ErrorKind.SERVER_ERROR,
    "504": ErrorKind.SERVER_ERROR,
    "529": ErrorKind.SERVER_ERROR,
    "server_error": ErrorKind.SERVER_ERROR,
    "internal_error": ErrorKind.SERVER_ERROR,
    "overloaded": ErrorKind.SERVER_ERROR,
    "bot_error": ErrorKind.SERVER_ERROR,
    # Protocol
    "malformed": ErrorKind.MALFORMED_STREAM,
    "malformed_stream": ErrorKind.MALFORMED_STREAM,
    "protocol_error": ErrorKind.MALFORMED_STREAM,
    # Cancellation
    "499": ErrorKind.CANCELLED,
    "cancelled": ErrorKind.CANCELLED,
    "canceled": ErrorKind.CANCELLED,
    # Transport
    "408": ErrorKind.TRANSPORT,
    "timeout": ErrorKind.TRANSPORT,
    "transport": ErrorKind.TRANSPORT,
    "connection_error": ErrorKind.TRANSPORT,
}

_RETRY_AFTER_PATTERN = re.compile(
    r"retry[\s_-]?after\s*[:=]?\s*(\d+(?:\.\d+)?)", re.IGNORECASE
)
_BARE_NUMBER_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*s?\s*$", re.IGNORECASE)


@dataclass(frozen=True)
class ClassifiedError:
    """Immutable classification of one failure.

    Attributes:
        kind: Error kind from the closed taxonomy
        detail: Original diagnostic text, verbatim
        raw_code: Raw code the classification was derived from
        retry_after: Suggested retry delay in seconds (rate limits only)
    """

    kind: ErrorKind
    detail: str = ""
    raw_code: str | None = None
    retry_after: float | None = None

    @property
    def category(self) -> ErrorCategory:
        """Category of the error kind."""
        return self.kind.category

    @property
    def retryable(self) -> bool:
        """Whether retrying the same request may succeed."""
        return self.kind.retryable


def parse_retry_after(detail: str | None) -> float | None:
    """Parse a retry delay out of free-form diagnostic text.

    Recognises ``retry_after=5``, ``Retry-After: 5``, ``retry after 5s``
    and a bare number of seconds.

    Args:
        detail: Diagnostic text from the service

    Returns:
        Delay in seconds, or None if the text carries none
    """
    if not detail:
        return None

    match = _RETRY_AFTER_PATTERN.search(detail) or _BARE_NUMBER_PATTERN.match(detail)
    if match is None:
        return None
    return float(match.group(1))


def _normalize_code(raw_code: str | int | None) -> str | None:
    if raw_code is None:
        return None
    code = str(raw_code).strip()
    return code or None


def classify(
    raw_code: str | int | None,
    raw_detail: str | None = None,
    *,
    retry_after: float | None = None,
) -> ClassifiedError:
    """Classify a raw error code and detail.

    Unknown codes classify as SERVER_ERROR with the detail kept verbatim.

    Args:
        raw_code: Error code from an error event or an HTTP status
        raw_detail: Diagnostic text accompanying the code
        retry_after: Explicit retry delay (e.g. from a header), which
            takes precedence over one parsed from the detail

    Returns:
        ClassifiedError for the input
    """
    code = _normalize_code(raw_code)
    detail = raw_detail or ""
    kind = _CODE_MAPPING.get(code.lower(), ErrorKind.SERVER_ERROR) if code else ErrorKind.SERVER_ERROR

    hint = None
    if kind is ErrorKind.RATE_LIMITED:
        hint = retry_after if retry_after is not None else parse_retry_after(detail)
        if hint is None:
            hint = DEFAULT_RETRY_AFTER

    return ClassifiedError(kind=kind, detail=detail, raw_code=code, retry_after=hint)


def classify_http_status(
    status_code: int,
    body: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> ClassifiedError:
    """Classify an HTTP error response.

    Args:
        status_code: HTTP status code
        body: Parsed response body
        headers: Response headers

    Returns:
        ClassifiedError for the response
    """
    return classify_failure(RemoteError.from_response(status_code, body, headers))


def classify_failure(exc: BaseException) -> ClassifiedError:
    """Classify an exception raised while talking to the service.

    Args:
        exc: The failure

    Returns:
        ClassifiedError for the failure
    """
    if isinstance(exc, ServiceError):
        return exc.error

    if isinstance(exc, RemoteError):
        code: str | int = exc.status_code
        # A service-provided error type is more specific than the status
        error_obj = exc.body.get("error") if exc.body else None
        if isinstance(error_obj, dict):
            error_type = error_obj.get("type") or error_obj.get("code")
            if isinstance(error_type, str) and error_type.lower() in _CODE_MAPPING:
                code = error_type
        detail = extract_error_message(exc.body) or exc.message
        return classify(code, detail, retry_after=exc.retry_after)

    if isinstance(exc, PipelineError):
        return ClassifiedError(
            kind=ErrorKind.MALFORMED_STREAM, detail=exc.message, raw_code="malformed_stream"
        )

    if isinstance(exc, asyncio.CancelledError):
        return ClassifiedError(kind=ErrorKind.CANCELLED, detail=str(exc), raw_code="cancelled")

    if isinstance(exc, asyncio.TimeoutError):
        return ClassifiedError(
            kind=ErrorKind.TRANSPORT, detail=str(exc) or "timed out", raw_code="timeout"
        )

    if isinstance(exc, (TransportError, httpx.TransportError, OSError)):
        detail = exc.message if isinstance(exc, TransportError) else str(exc)
        return ClassifiedError(
            kind=ErrorKind.TRANSPORT, detail=detail or type(exc).__name__, raw_code="transport"
        )

    if isinstance(exc, httpx.HTTPStatusError):
        return classify_http_status(exc.response.status_code)

    return ClassifiedError(kind=ErrorKind.SERVER_ERROR, detail=repr(exc))
