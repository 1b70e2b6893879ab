"""
Core PoeClient implementation.
"""

from __future__ import annotations

from functools import partial
from typing import TYPE_CHECKING, Any

from poe_client.client.builder import PoeClientBuilder
from poe_client.client.catalog import BotCatalog
from poe_client.client.session import ChatSession
from poe_client.pipeline import DEFAULT_MAX_FRAME_SIZE, create_decoder
from poe_client.transport import HttpTransport

if TYPE_CHECKING:
    from pathlib import Path

    from poe_client.client.cancel import CancelToken
    from poe_client.client.response import FinalReply
    from poe_client.client.session import ReplyStream
    from poe_client.transport.base import ChatTransport
    from poe_client.types.bot import BotInfo
    from poe_client.types.message import Attachment, Message


class PoeClient:
    """Client for chatting with bots on the service.

    Each exchange runs in its own ChatSession; the client only holds the
    transport and the settings every session shares.

    Example:
        >>> async with PoeClient.create(api_key="...") as client:
        ...     async for chunk in client.stream("GPT-4o", Message.user("Hi")):
        ...         print(chunk.text, end="")
        ...     reply = await client.chat("GPT-4o", Message.user("Summarize that"))

        >>> client = (
        ...     PoeClient.builder()
        ...     .api_key("...")
        ...     .stream_format("lines")
        ...     .timeout(30)
        ...     .build()
        ... )
    """

    def __init__(
        self,
        transport: ChatTransport,
        *,
        stream_format: str = "sse",
        max_frame_size: int = DEFAULT_MAX_FRAME_SIZE,
        diagnostic_keys: frozenset[str] | None = None,
        user_id: str = "",
    ) -> None:
        """Initialize the client.

        Args:
            transport: Collaborator that talks to the service
            stream_format: Wire format of reply streams ('sse' or 'lines')
            max_frame_size: Bounded decoder buffering window
            diagnostic_keys: Meta keys kept in reply metadata
            user_id: Opaque caller identifier sent with every query

        Raises:
            ValueError: If the stream format is unknown
        """
        # Fail fast on an unknown format rather than on the first exchange
        create_decoder(stream_format, max_frame_size)

        self._transport = transport
        self._decoder_factory = partial(create_decoder, stream_format, max_frame_size)
        self._stream_format = stream_format
        self._diagnostic_keys = diagnostic_keys
        self._user_id = user_id
        self._catalog = BotCatalog(transport)

    @classmethod
    def create(
        cls,
        *,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        stream_format: str = "sse",
    ) -> PoeClient:
        """Create a client backed by the HTTP transport.

        Args:
            api_key: Explicit API key (default: POE_API_KEY or keyring)
            base_url: Base URL override (default: POE_BASE_URL or api.poe.com)
            timeout: Read timeout in seconds
            stream_format: Wire format of reply streams

        Returns:
            Configured PoeClient
        """
        transport = HttpTransport(api_key=api_key, base_url=base_url, timeout=timeout)
        return cls(transport, stream_format=stream_format)

    @classmethod
    def builder(cls) -> PoeClientBuilder:
        """Get a builder for advanced configuration."""
        return PoeClientBuilder()

    @property
    def transport(self) -> ChatTransport:
        """Transport shared by all sessions."""
        return self._transport

    @property
    def stream_format(self) -> str:
        """Wire format of reply streams."""
        return self._stream_format

    def session(
        self,
        bot: str,
        *,
        token: CancelToken | None = None,
        conversation_id: str | None = None,
    ) -> ChatSession:
        """Start a fresh session with a bot.

        Args:
            bot: Bot name
            token: Optional cancellation token
            conversation_id: Conversation to continue

        Returns:
            New idle ChatSession
        """
        return ChatSession(
            self._transport,
            bot,
            decoder_factory=self._decoder_factory,
            token=token,
            diagnostic_keys=self._diagnostic_keys,
            user_id=self._user_id,
            conversation_id=conversation_id,
        )

    def stream(
        self,
        bot: str,
        message: Message,
        *,
        history: list[Message] | None = None,
        token: CancelToken | None = None,
        **kwargs: Any,
    ) -> ReplyStream:
        """Send a message in a new session and stream the reply.

        Args:
            bot: Bot name
            message: The new message
            history: Earlier messages, oldest first
            token: Optional cancellation token
            **kwargs: temperature / stop_sequences

        Returns:
            Reply stream; its session is available as ``stream.session``
        """
        return self.session(bot, token=token).send(message, history=history or (), **kwargs)

    async def chat(
        self,
        bot: str,
        message: Message,
        *,
        history: list[Message] | None = None,
        token: CancelToken | None = None,
        **kwargs: Any,
    ) -> FinalReply:
        """Send a message in a new session and wait for the whole reply.

        Raises:
            ServiceError: If the exchange failed or was cancelled
        """
        return await self.stream(bot, message, history=history, token=token, **kwargs).final()

    def catalog(self) -> BotCatalog:
        """Get the bot catalog bound to this client's transport."""
        return self._catalog

    async def list_bots(self) -> list[BotInfo]:
        """Fetch the available bots.

        Raises:
            ServiceError: If the fetch fails
        """
        return await self._catalog.list()

    async def upload_file(
        self,
        path: str | Path | None = None,
        *,
        url: str | None = None,
        content_type: str | None = None,
    ) -> Attachment:
        """Upload a file to attach to a message.

        Raises:
            TypeError: If the transport does not support uploads
        """
        upload = getattr(self._transport, "upload_file", None)
        if upload is None:
            raise TypeError(f"{type(self._transport).__name__} does not support file uploads")
        return await upload(path, url=url, content_type=content_type)

    async def close(self) -> None:
        """Close the underlying transport."""
        close = getattr(self._transport, "close", None)
        if close is not None:
            await close()

    async def __aenter__(self) -> PoeClient:
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()


async def get_model_list(
    api_key: str | None = None,
    *,
    base_url: str | None = None,
) -> list[BotInfo]:
    """Fetch the bot catalog with a one-off client.

    Args:
        api_key: Explicit API key (default: POE_API_KEY or keyring)
        base_url: Base URL override

    Returns:
        Available bots in server order

    Raises:
        ServiceError: If the fetch fails
    """
    async with PoeClient.create(api_key=api_key, base_url=base_url) as client:
        return await client.list_bots()
