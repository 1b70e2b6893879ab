"""
Builder for fluent client construction.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from poe_client.pipeline import DEFAULT_MAX_FRAME_SIZE

if TYPE_CHECKING:
    from poe_client.client.core import PoeClient
    from poe_client.transport.base import ChatTransport


class PoeClientBuilder:
    """Builder for creating PoeClient instances with custom configuration.

    Example:
        >>> client = (
        ...     PoeClientBuilder()
        ...     .api_key("...")
        ...     .base_url("https://api.poe.com")
        ...     .timeout(60)
        ...     .build()
        ... )
    """

    def __init__(self) -> None:
        """Initialize the builder."""
        self._api_key: str | None = None
        self._base_url: str | None = None
        self._timeout: float | None = None
        self._proxy: str | None = None
        self._stream_format: str = "sse"
        self._max_frame_size: int = DEFAULT_MAX_FRAME_SIZE
        self._diagnostic_keys: frozenset[str] | None = None
        self._user_id: str = ""
        self._transport: ChatTransport | None = None

    def api_key(self, key: str) -> PoeClientBuilder:
        """Set explicit API key.

        Args:
            key: API key

        Returns:
            Self for chaining
        """
        self._api_key = key
        return self

    def base_url(self, url: str) -> PoeClientBuilder:
        """Override base URL.

        Args:
            url: Base URL for API requests

        Returns:
            Self for chaining
        """
        self._base_url = url
        return self

    def timeout(self, seconds: float) -> PoeClientBuilder:
        """Set read timeout.

        Args:
            seconds: Timeout in seconds

        Returns:
            Self for chaining
        """
        self._timeout = seconds
        return self

    def proxy(self, url: str) -> PoeClientBuilder:
        """Route requests through a proxy.

        Args:
            url: Proxy URL

        Returns:
            Self for chaining
        """
        self._proxy = url
        return self

    def stream_format(self, name: str) -> PoeClientBuilder:
        """Select the reply stream wire format.

        Args:
            name: 'sse' (default) or 'lines'

        Returns:
            Self for chaining
        """
        self._stream_format = name
        return self

    def max_frame_size(self, size: int) -> PoeClientBuilder:
        """Set the decoder buffering window.

        Args:
            size: Largest frame, in characters

        Returns:
            Self for chaining
        """
        self._max_frame_size = size
        return self

    def diagnostic_keys(self, keys: set[str] | frozenset[str]) -> PoeClientBuilder:
        """Set which meta keys are kept in reply metadata.

        Args:
            keys: Meta keys to keep

        Returns:
            Self for chaining
        """
        self._diagnostic_keys = frozenset(keys)
        return self

    def user_id(self, user_id: str) -> PoeClientBuilder:
        """Set the caller identifier sent with queries."""
        self._user_id = user_id
        return self

    def transport(self, transport: ChatTransport) -> PoeClientBuilder:
        """Use a custom transport instead of HTTP.

        Connection settings (api_key, base_url, timeout, proxy) are ignored
        when a transport is supplied.
        """
        self._transport = transport
        return self

    def build(self) -> PoeClient:
        """Build the PoeClient instance.

        Returns:
            Configured PoeClient

        Raises:
            ValueError: If the stream format is unknown or the window is not positive
        """
        if self._max_frame_size <= 0:
            raise ValueError("max_frame_size must be positive")

        from poe_client.client.core import PoeClient
        from poe_client.transport import HttpTransport

        transport = self._transport or HttpTransport(
            api_key=self._api_key,
            base_url=self._base_url,
            timeout=self._timeout,
            proxy=self._proxy,
        )
        return PoeClient(
            transport,
            stream_format=self._stream_format,
            max_frame_size=self._max_frame_size,
            diagnostic_keys=self._diagnostic_keys,
            user_id=self._user_id,
        )
