"""
Base error classes for poe-client-python.

Provides a layered error hierarchy:
- PoeError: Base class for all library errors
- TransportError: HTTP/network errors
- PipelineError: Stream decoding errors
- RemoteError: Error responses returned by the service
- UsageError: Misuse of the client API (e.g. sending twice on one session)
- ServiceError: Classified failure of one exchange, surfaced to callers
"""

from __future__ import annotations

import contextlib
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from poe_client.errors.classification import ClassifiedError, ErrorKind


@dataclass
class ErrorContext:
    """Structured error context for diagnostics."""

    details: dict[str, Any] = field(default_factory=dict)
    """Additional details about the error"""

    source: str | None = None
    """Error source (e.g., 'transport', 'pipeline', 'session')"""

    hint: str | None = None
    """Actionable hint for resolving the error"""

    def __str__(self) -> str:
        parts = []
        if self.source:
            parts.append(f"[{self.source}]")
        if self.hint:
            parts.append(f"(hint: {self.hint})")
        return " ".join(parts)


class PoeError(Exception):
    """Base class for all poe-client-python errors.

    Attributes:
        message: Human-readable error message
        context: Structured error context
    """

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
    ) -> None:
        self.message = message
        self.context = context or ErrorContext()
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the full error message."""
        ctx_str = str(self.context)
        if ctx_str:
            return f"{self.message} {ctx_str}"
        return self.message

    def with_hint(self, hint: str) -> PoeError:
        """Add a hint to this error."""
        self.context.hint = hint
        return self


class TransportError(PoeError):
    """Error during HTTP transport.

    Raised when:
    - Network connection failure
    - Timeout
    - Connection reset mid-stream
    """

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        *,
        url: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        ctx = context or ErrorContext(source="transport")
        if url:
            ctx.details["url"] = url
        super().__init__(message, ctx)
        self.url = url
        self.__cause__ = cause


class PipelineError(PoeError):
    """Error while decoding the response stream.

    Raised when a frame cannot be parsed, when a frame outgrows the
    buffering window, or when the stream ends before its done event.
    """

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        *,
        operator: str | None = None,
        frame: str | None = None,
    ) -> None:
        ctx = context or ErrorContext(source="pipeline")
        if operator:
            ctx.details["operator"] = operator
        if frame is not None:
            ctx.details["frame"] = frame[:200]
        super().__init__(message, ctx)
        self.operator = operator
        self.frame = frame


class UsageError(PoeError):
    """The client API was used out of order.

    Raised when send() is called on a session that is not idle, or when
    a result is requested before the exchange has finished.
    """

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        *,
        state: str | None = None,
    ) -> None:
        ctx = context or ErrorContext(source="session")
        if state:
            ctx.details["state"] = state
        super().__init__(message, ctx)
        self.state = state


class RemoteError(PoeError):
    """Error response returned by the service.

    Attributes:
        status_code: HTTP status code
        body: Parsed response body, if it was JSON
        retry_after: Retry delay in seconds from the Retry-After header
        request_id: Request identifier echoed by the service
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        body: dict[str, Any] | None = None,
        retry_after: float | None = None,
        request_id: str | None = None,
    ) -> None:
        ctx = ErrorContext(source="remote")
        ctx.details["status_code"] = status_code
        if request_id:
            ctx.details["request_id"] = request_id
        super().__init__(message, ctx)

        self.status_code = status_code
        self.body = body or {}
        self.retry_after = retry_after
        self.request_id = request_id

    @classmethod
    def from_response(
        cls,
        status_code: int,
        body: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> RemoteError:
        """Create RemoteError from an HTTP error response.

        Args:
            status_code: HTTP status code
            body: Response body (parsed JSON)
            headers: Response headers

        Returns:
            RemoteError carrying the service's message
        """
        message = extract_error_message(body) or f"HTTP {status_code}"

        retry_after = None
        request_id = None
        if headers:
            lowered = {k.lower(): v for k, v in headers.items()}
            retry_after_str = lowered.get("retry-after")
            if retry_after_str:
                with contextlib.suppress(ValueError):
                    retry_after = float(retry_after_str)
            request_id = lowered.get("x-request-id") or lowered.get("request-id")

        return cls(
            message=message,
            status_code=status_code,
            body=body,
            retry_after=retry_after,
            request_id=request_id,
        )


class ServiceError(PoeError):
    """Classified failure of one exchange or catalog fetch.

    This is the single error a caller receives per failed exchange. The
    classification is available as ``error``; ``kind``, ``retry_after``
    and ``retryable`` are shortcuts into it.

    Example:
        >>> try:
        ...     reply = await session.complete(Message.user("Hi"))
        ... except ServiceError as e:
        ...     if e.kind is ErrorKind.RATE_LIMITED:
        ...         await asyncio.sleep(e.retry_after)
    """

    def __init__(self, error: ClassifiedError) -> None:
        ctx = ErrorContext(source="service")
        ctx.details["kind"] = error.kind.value
        if error.raw_code is not None:
            ctx.details["raw_code"] = error.raw_code
        if error.retry_after is not None:
            ctx.details["retry_after"] = error.retry_after
        message = f"{error.kind.value}: {error.detail}" if error.detail else error.kind.value
        super().__init__(message, ctx)
        self.error = error

    @property
    def kind(self) -> ErrorKind:
        """Classified error kind."""
        return self.error.kind

    @property
    def retry_after(self) -> float | None:
        """Suggested delay before retrying, in seconds."""
        return self.error.retry_after

    @property
    def retryable(self) -> bool:
        """Whether retrying the same request may succeed."""
        return self.error.retryable

    @property
    def detail(self) -> str:
        """Original diagnostic text."""
        return self.error.detail

    @classmethod
    def from_exception(cls, exc: BaseException) -> ServiceError:
        """Classify an arbitrary failure into a ServiceError.

        Args:
            exc: The failure raised by the transport or pipeline

        Returns:
            ServiceError chained to the original exception
        """
        if isinstance(exc, ServiceError):
            return exc

        from poe_client.errors.classification import classify_failure

        error = cls(classify_failure(exc))
        error.__cause__ = exc
        return error


def extract_error_message(body: dict[str, Any] | None) -> str | None:
    """Extract error message from a response body.

    Supports:
    - {"error": {"message": "..."}}
    - {"error": "..."}
    - {"text": "..."} (bot error events)
    - {"message": "..."} / {"detail": "..."}

    Args:
        body: Response body (parsed JSON)

    Returns:
        Error message if found, None otherwise
    """
    if not body:
        return None

    if "error" in body:
        error = body["error"]
        if isinstance(error, dict):
            msg = error.get("message")
            if isinstance(msg, str):
                return msg
        elif isinstance(error, str):
            return error

    for key in ("text", "message"):
        msg = body.get(key)
        if isinstance(msg, str):
            return msg

    if "detail" in body:
        detail = body["detail"]
        if isinstance(detail, str):
            return detail
        if isinstance(detail, list) and detail:
            return str(detail[0])

    return None
