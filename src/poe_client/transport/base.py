"""
Transport collaborator interface.

Sessions and the bot catalog talk to the service only through this
protocol, so any object with these two methods can stand in for the
HTTP transport.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from contextlib import AbstractAsyncContextManager

    from poe_client.types.request import QueryRequest


@runtime_checkable
class ChatTransport(Protocol):
    """Opens reply streams and fetches the bot catalog."""

    def stream_query(
        self, bot: str, request: QueryRequest
    ) -> AbstractAsyncContextManager[AsyncIterator[bytes]]:
        """Open the reply byte stream for one query.

        The stream is closed when the context exits.
        """
        ...

    async def fetch_models(self) -> list[dict[str, Any]]:
        """Fetch raw catalog entries in server order."""
        ...
