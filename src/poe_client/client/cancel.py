"""
Exchange cancellation control.

Provides the cooperative cancellation token a chat session observes at
each of its suspension points.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from poe_client.telemetry import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable

logger = get_logger(__name__)


class CancelReason(str, Enum):
    """Reasons for cancellation."""

    USER_REQUEST = "user_request"
    TIMEOUT = "timeout"
    ABANDONED = "abandoned"
    SHUTDOWN = "shutdown"


@dataclass
class CancelState:
    """State of a cancellation token.

    Attributes:
        cancelled: Whether cancellation was requested
        reason: Reason for cancellation
        timestamp: Time of cancellation
    """

    cancelled: bool = False
    reason: CancelReason | None = None
    timestamp: float | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


class CancelToken:
    """Cancellation token for one exchange.

    Setting the token never raises into the caller; the session that owns
    the token notices it at its next suspension point.

    Example:
        >>> token = CancelToken(timeout=30)
        >>> session = client.session("Claude-3.5-Sonnet", token=token)
        >>> # from anywhere else
        >>> token.cancel(CancelReason.USER_REQUEST)
    """

    def __init__(self, timeout: float | None = None) -> None:
        """Initialize cancellation token.

        Args:
            timeout: Cancel automatically after this many seconds
        """
        self._state = CancelState()
        self._event = asyncio.Event()
        self._callbacks: list[Callable[[CancelReason], Any]] = []
        self._timeout = timeout
        self._timeout_task: asyncio.Task[None] | None = None

        if timeout:
            self._start_timeout()

    def _start_timeout(self) -> None:
        async def timeout_handler() -> None:
            await asyncio.sleep(self._timeout)  # type: ignore[arg-type]
            if not self._state.cancelled:
                self.cancel(CancelReason.TIMEOUT)

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("CancelToken timeout ignored: no running event loop")
            return
        self._timeout_task = loop.create_task(timeout_handler())

    def cancel(
        self,
        reason: CancelReason = CancelReason.USER_REQUEST,
        **metadata: Any,
    ) -> bool:
        """Request cancellation.

        Args:
            reason: Reason for cancellation
            **metadata: Additional metadata

        Returns:
            True if cancellation was newly requested, False if already cancelled
        """
        if self._state.cancelled:
            return False

        self._state.cancelled = True
        self._state.reason = reason
        self._state.timestamp = time.time()
        self._state.metadata.update(metadata)

        self._event.set()

        if self._timeout_task and not self._timeout_task.done():
            self._timeout_task.cancel()

        for callback in self._callbacks:
            self._invoke(callback, reason)

        return True

    @property
    def is_cancelled(self) -> bool:
        """Check if cancellation was requested."""
        return self._state.cancelled

    @property
    def reason(self) -> CancelReason | None:
        """Get cancellation reason."""
        return self._state.reason

    @property
    def state(self) -> CancelState:
        """Get full cancellation state."""
        return self._state

    async def wait(self) -> CancelReason:
        """Wait until cancellation is requested.

        Returns:
            Cancellation reason
        """
        await self._event.wait()
        return self._state.reason or CancelReason.USER_REQUEST

    def on_cancel(self, callback: Callable[[CancelReason], Any]) -> CancelToken:
        """Register a callback to be called on cancellation.

        Args:
            callback: Callback function

        Returns:
            Self for chaining
        """
        self._callbacks.append(callback)
        if self._state.cancelled and self._state.reason:
            self._invoke(callback, self._state.reason)
        return self

    def _invoke(self, callback: Callable[[CancelReason], Any], reason: CancelReason) -> None:
        # Callbacks run on the canceller's code path, which must not fail
        try:
            result = callback(reason)
            if asyncio.iscoroutine(result):
                _ = asyncio.ensure_future(result)  # noqa: RUF006
        except Exception:
            logger.warning("Cancel callback failed", exc_info=True, reason=reason.value)
