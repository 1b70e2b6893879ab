"""
Chat session: one request/response exchange with a bot.

A session moves through ``IDLE -> SENDING -> STREAMING`` and ends in
exactly one of ``COMPLETED``, ``FAILED`` or ``CANCELLED``. It owns the
decoder, the aggregator and the transport stream of its exchange and is
never reused; start a new session for the next message.
"""

from __future__ import annotations

import asyncio
import contextlib
import time
import uuid
from enum import Enum
from typing import TYPE_CHECKING, Any

from poe_client.client.cancel import CancelReason, CancelToken
from poe_client.client.response import FinalReply
from poe_client.errors import (
    ErrorKind,
    PipelineError,
    ServiceError,
    UsageError,
    classify,
)
from poe_client.pipeline import StreamAggregator, create_decoder
from poe_client.telemetry import get_logger
from poe_client.types.request import QueryRequest

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, AsyncIterator, Awaitable, Callable, Sequence

    from poe_client.pipeline import Decoder
    from poe_client.transport.base import ChatTransport
    from poe_client.types.chunk import StreamChunk
    from poe_client.types.message import Message

logger = get_logger(__name__)


class SessionState(str, Enum):
    """Lifecycle of a chat session."""

    IDLE = "idle"
    SENDING = "sending"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        """Check if no further transitions can happen."""
        return self in _TERMINAL_STATES


_TERMINAL_STATES = frozenset(
    {SessionState.COMPLETED, SessionState.FAILED, SessionState.CANCELLED}
)


class _Cancelled(Exception):
    """Internal signal: the cancel token fired at a suspension point."""


class ChatSession:
    """One exchange with a named bot.

    Example:
        >>> session = ChatSession(transport, "Claude-3.5-Sonnet")
        >>> async for chunk in session.send(Message.user("Hello")):
        ...     if chunk.is_reset:
        ...         screen.clear()
        ...     screen.write(chunk.text)
        >>> reply = session.result()
    """

    def __init__(
        self,
        transport: ChatTransport,
        bot: str,
        *,
        decoder_factory: Callable[[], Decoder] | None = None,
        token: CancelToken | None = None,
        diagnostic_keys: frozenset[str] | None = None,
        user_id: str = "",
        conversation_id: str | None = None,
    ) -> None:
        """Initialize the session.

        Args:
            transport: Collaborator that opens reply streams
            bot: Bot name to query
            decoder_factory: Builds the decoder for this exchange (default: SSE)
            token: Cancellation token (default: a fresh one)
            diagnostic_keys: Meta keys to keep in the reply metadata
            user_id: Opaque caller identifier sent with the query
            conversation_id: Conversation to continue (default: a new one)
        """
        self._transport = transport
        self._bot = bot
        self._decoder_factory = decoder_factory or create_decoder
        self._token = token or CancelToken()
        self._diagnostic_keys = diagnostic_keys
        self._user_id = user_id
        self._conversation_id = conversation_id

        self._id = uuid.uuid4().hex[:12]
        self._state = SessionState.IDLE
        self._stream: ReplyStream | None = None
        self._reply: FinalReply | None = None
        self._error: ServiceError | None = None
        self._aggregator: StreamAggregator | None = None
        self._finished = asyncio.Event()

    @property
    def id(self) -> str:
        """Session identifier used in logs."""
        return self._id

    @property
    def bot(self) -> str:
        """Bot this session queries."""
        return self._bot

    @property
    def state(self) -> SessionState:
        """Current lifecycle state."""
        return self._state

    @property
    def token(self) -> CancelToken:
        """Cancellation token observed by this session."""
        return self._token

    def send(
        self,
        message: Message,
        *,
        history: Sequence[Message] = (),
        temperature: float | None = None,
        stop_sequences: list[str] | None = None,
    ) -> ReplyStream:
        """Submit a message and return the reply stream.

        Only valid once, from ``IDLE``. Iterate the returned stream to run
        the exchange.

        Args:
            message: The new message
            history: Earlier messages of the conversation, oldest first
            temperature: Optional sampling temperature
            stop_sequences: Optional sequences that end generation

        Returns:
            Lazy, single-use stream of reply chunks

        Raises:
            UsageError: If the session is not idle
        """
        if self._state is not SessionState.IDLE:
            raise UsageError(
                f"send() requires an idle session; this one is {self._state.value}",
                state=self._state.value,
            ).with_hint("create a new session for each message")

        request = QueryRequest(
            query=[*history, message],
            user_id=self._user_id,
            temperature=temperature,
            stop_sequences=stop_sequences,
            **({"conversation_id": self._conversation_id} if self._conversation_id else {}),
        )
        self._transition(SessionState.SENDING)
        self._stream = ReplyStream(self, self._run(request))
        return self._stream

    async def complete(self, message: Message, **kwargs: Any) -> FinalReply:
        """Send a message and wait for the whole reply.

        Args:
            message: The new message
            **kwargs: Passed to send()

        Returns:
            The final reply

        Raises:
            ServiceError: If the exchange failed or was cancelled
        """
        return await self.send(message, **kwargs).final()

    def cancel(self, reason: CancelReason = CancelReason.USER_REQUEST) -> bool:
        """Cancel the exchange.

        Never raises. A step that is waiting on the transport notices the
        cancellation at once and closes the stream. Between steps the
        session is cancelled right away and the stream is closed in the
        background.

        Args:
            reason: Reason for cancellation

        Returns:
            False if the session had already finished or received its done
            event, True otherwise
        """
        if self._state.is_terminal:
            return False
        if self._aggregator is not None and self._aggregator.terminated:
            return False
        self._token.cancel(reason)
        stream = self._stream
        if stream is None or not stream.started:
            # Nothing is open yet; finish right away
            self._finish_cancelled(reason)
        elif not stream.in_flight:
            stream._close_soon(self._finish_cancelled(reason))
        return True

    def result(self) -> FinalReply:
        """Get the outcome of the finished exchange.

        Returns:
            The final reply

        Raises:
            ServiceError: If the exchange failed or was cancelled
            UsageError: If the exchange has not finished
        """
        if self._reply is not None:
            return self._reply
        if self._error is not None:
            raise self._error
        raise UsageError(
            f"Exchange has not finished; session is {self._state.value}",
            state=self._state.value,
        )

    async def wait(self) -> None:
        """Wait until the session reaches a terminal state."""
        await self._finished.wait()

    def _transition(self, state: SessionState) -> None:
        logger.debug(
            "Session state change",
            session_id=self._id,
            old=self._state.value,
            new=state.value,
        )
        self._state = state
        if state.is_terminal:
            self._finished.set()

    def _complete(self, reply: FinalReply) -> None:
        if self._state.is_terminal:
            return
        self._reply = reply
        self._transition(SessionState.COMPLETED)
        logger.info(
            "Exchange completed",
            session_id=self._id,
            bot=self._bot,
            chars=len(reply.text),
            duration_s=round(reply.duration, 3),
        )

    def _fail(self, error: ServiceError) -> ServiceError:
        """Record the failure unless a terminal state was reached first."""
        if self._state.is_terminal:
            return self._error or error
        self._error = error
        if error.kind is ErrorKind.CANCELLED:
            self._transition(SessionState.CANCELLED)
            logger.info("Exchange cancelled", session_id=self._id, bot=self._bot)
        else:
            self._transition(SessionState.FAILED)
            logger.warning(
                "Exchange failed",
                session_id=self._id,
                bot=self._bot,
                kind=error.kind.value,
                detail=error.detail,
            )
        return error

    def _finish_cancelled(self, reason: CancelReason | None) -> ServiceError:
        reason_value = (reason or CancelReason.USER_REQUEST).value
        return self._fail(ServiceError(classify("cancelled", reason_value)))

    async def _until_cancelled(self, step: Callable[[], Awaitable[Any]]) -> Any:
        """Await ``step()`` unless the cancel token fires first."""
        if self._token.is_cancelled:
            raise _Cancelled

        task = asyncio.ensure_future(step())
        waiter = asyncio.ensure_future(self._token.wait())
        try:
            done, _ = await asyncio.wait(
                {task, waiter}, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            waiter.cancel()

        # A result that is already available wins over a simultaneous cancel
        if task in done:
            return task.result()

        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        raise _Cancelled

    async def _run(self, request: QueryRequest) -> AsyncGenerator[StreamChunk, None]:
        """Drive the exchange; yields chunks and records the outcome."""
        started = time.monotonic()
        decoder = self._decoder_factory()
        aggregator = StreamAggregator(diagnostic_keys=self._diagnostic_keys)
        self._aggregator = aggregator
        error: ServiceError | None = None

        try:
            async with contextlib.AsyncExitStack() as stack:
                if self._token.is_cancelled:
                    raise _Cancelled
                # Opening the stream is raced against the token like any read
                opener = self._transport.stream_query(self._bot, request)
                byte_stream = await self._until_cancelled(opener.__aenter__)
                stack.push_async_exit(opener)
                chunks = self._iterate(byte_stream, decoder, aggregator)
                stack.push_async_callback(chunks.aclose)
                async for chunk in chunks:
                    yield chunk
        except _Cancelled:
            error = self._finish_cancelled(self._token.reason)
        except ServiceError as e:
            error = e
        except (GeneratorExit, asyncio.CancelledError):
            # Consumer stopped iterating or its task was cancelled
            self._token.cancel(CancelReason.ABANDONED)
            self._finish_cancelled(CancelReason.ABANDONED)
            raise
        except Exception as e:
            error = ServiceError.from_exception(e)

        if error is not None:
            raise self._fail(error)

        self._complete(
            FinalReply(
                text=aggregator.partial.text,
                suggestions=aggregator.suggestions,
                bot=self._bot,
                duration=time.monotonic() - started,
                metadata=aggregator.metadata,
                epochs=aggregator.partial.epoch,
            )
        )

    async def _iterate(
        self,
        byte_stream: AsyncIterator[bytes],
        decoder: Decoder,
        aggregator: StreamAggregator,
    ) -> AsyncGenerator[StreamChunk, None]:
        iterator = byte_stream.__aiter__()
        while not aggregator.terminated:
            try:
                data = await self._until_cancelled(iterator.__anext__)
            except StopAsyncIteration:
                events = decoder.finish()
                at_end = True
            else:
                if data and self._state is SessionState.SENDING:
                    self._transition(SessionState.STREAMING)
                events = decoder.feed(data)
                at_end = False

            for event in events:
                chunk = aggregator.feed(event)
                if chunk is not None:
                    yield chunk
                    if self._token.is_cancelled:
                        raise _Cancelled
                if aggregator.terminated:
                    break

            if at_end and not aggregator.terminated:
                raise PipelineError("Stream ended before the done event", operator=decoder.name)


class ReplyStream:
    """Caller-facing, single-use stream of reply chunks.

    Iterating runs the exchange. The stream ends after the done event, or
    raises the exchange's ServiceError. Closing it early (``aclose``, or
    leaving ``async with``) cancels the exchange.

    Example:
        >>> async with session.send(Message.user("Hi")) as stream:
        ...     async for chunk in stream:
        ...         print(chunk.text, end="")
        >>> print(session.result().suggestions)
    """

    def __init__(
        self, session: ChatSession, chunks: AsyncGenerator[StreamChunk, None]
    ) -> None:
        self._session = session
        self._chunks = chunks
        self._started = False
        self._in_flight = False
        self._closed = False
        self._closing: asyncio.Task[None] | None = None
        self._pending_error: ServiceError | None = None

    @property
    def session(self) -> ChatSession:
        """Session that owns this stream."""
        return self._session

    @property
    def started(self) -> bool:
        """Check if iteration has begun."""
        return self._started

    @property
    def in_flight(self) -> bool:
        """Check if a step is currently waiting for the next chunk."""
        return self._in_flight

    def __aiter__(self) -> ReplyStream:
        return self

    async def __anext__(self) -> StreamChunk:
        if self._closed:
            # Cancelled between steps: report it once, then end
            await self._wait_closed()
            error, self._pending_error = self._pending_error, None
            if error is not None:
                raise error
            raise StopAsyncIteration
        if not self._started:
            self._started = True
            if self._session.state.is_terminal:
                # Cancelled before the first step
                self._closed = True
                await self._chunks.aclose()
                self._session.result()
                raise StopAsyncIteration
        self._in_flight = True
        try:
            return await self._chunks.__anext__()
        finally:
            self._in_flight = False

    async def final(self) -> FinalReply:
        """Drain the remaining chunks and return the final reply.

        Raises:
            ServiceError: If the exchange failed or was cancelled
        """
        async for _ in self:
            pass
        return self._session.result()

    async def aclose(self) -> None:
        """Stop the exchange if it is still running and close the stream."""
        if self._closing is not None:
            await self._wait_closed()
            return
        if self._closed:
            return
        self._closed = True
        await self._chunks.aclose()
        if not self._session.state.is_terminal:
            self._session._finish_cancelled(CancelReason.ABANDONED)

    async def _wait_closed(self) -> None:
        if self._closing is not None:
            await asyncio.wait({self._closing})

    def _close_soon(self, error: ServiceError) -> None:
        """Close the stream in a background task after a cancel between steps."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Off the loop: the next step notices the token instead
            return
        self._closed = True
        self._pending_error = error
        self._closing = loop.create_task(self._chunks.aclose())
        self._closing.add_done_callback(_log_close_failure)

    async def __aenter__(self) -> ReplyStream:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()


def _log_close_failure(task: asyncio.Task[None]) -> None:
    if not task.cancelled() and task.exception() is not None:
        logger.debug("Closing the reply stream failed", error=str(task.exception()))
