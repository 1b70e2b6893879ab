"""
Bot catalog: the list of bots available to the caller.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import ValidationError

from poe_client.errors import ServiceError, classify
from poe_client.telemetry import get_logger
from poe_client.types.bot import BotInfo

if TYPE_CHECKING:
    from collections.abc import Iterator

    from poe_client.transport.base import ChatTransport

logger = get_logger(__name__)


class BotCatalog:
    """Lookup table of bots, refreshed wholesale by each fetch.

    Example:
        >>> catalog = client.catalog()
        >>> bots = await catalog.list()
        >>> catalog.get("GPT-4o").supports("image_input")
        True
    """

    def __init__(self, transport: ChatTransport) -> None:
        self._transport = transport
        self._bots: dict[str, BotInfo] = {}

    async def list(self) -> list[BotInfo]:
        """Fetch the catalog from the service.

        Every call is a live fetch; nothing is cached between calls apart
        from the lookup table used by get().

        Returns:
            Bots in server order (empty if the service lists none)

        Raises:
            ServiceError: If the fetch fails or an entry is malformed
        """
        try:
            entries = await self._transport.fetch_models()
        except Exception as e:
            raise ServiceError.from_exception(e) from e

        try:
            bots = [BotInfo.from_api(entry) for entry in entries]
        except (ValidationError, KeyError, TypeError, AttributeError) as e:
            raise ServiceError(
                classify("malformed_stream", f"Invalid catalog entry: {e}")
            ) from e

        self._bots = {bot.id: bot for bot in bots}
        logger.debug("Fetched bot catalog", count=len(bots))
        return bots

    def get(self, bot_id: str) -> BotInfo | None:
        """Look up a bot from the last fetch."""
        return self._bots.get(bot_id)

    def __len__(self) -> int:
        return len(self._bots)

    def __contains__(self, bot_id: object) -> bool:
        return bot_id in self._bots

    def __iter__(self) -> Iterator[BotInfo]:
        return iter(list(self._bots.values()))
