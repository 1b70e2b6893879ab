"""
HTTP transport using httpx for async requests.

Provides:
- Streaming bot queries
- The models (bot catalog) endpoint
- File uploads for attachments
- Configurable timeouts and proxy
"""

from __future__ import annotations

import importlib.util
import json as json_module
import mimetypes
import os
from contextlib import asynccontextmanager, suppress
from pathlib import Path
from typing import TYPE_CHECKING, Any

import httpx

from poe_client.errors import RemoteError, TransportError
from poe_client.telemetry import get_logger
from poe_client.transport.auth import get_auth_header, resolve_api_key
from poe_client.types.message import Attachment

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from poe_client.types.request import QueryRequest

logger = get_logger(__name__)

DEFAULT_BASE_URL = "https://api.poe.com"
DEFAULT_UPLOAD_URL = "https://www.quora.com/poe_api/file_upload_3RD_PARTY_POST"

# Default timeouts
_DEFAULT_TIMEOUT = 120.0
_DEFAULT_CONNECT_TIMEOUT = 10.0

_UA_VERSION: str | None = None


def _http2_enabled() -> bool:
    """Enable HTTP/2 only when optional dependency is present."""
    return importlib.util.find_spec("h2") is not None


def _trust_env_enabled() -> bool:
    """Use env proxy settings only when explicitly enabled."""
    return os.getenv("POE_HTTP_TRUST_ENV", "0") == "1"


def _get_ua_version() -> str:
    """Get package version for User-Agent (cached)."""
    global _UA_VERSION
    if _UA_VERSION is None:
        from importlib.metadata import PackageNotFoundError, version

        try:
            _UA_VERSION = version("poe-client-python")
        except PackageNotFoundError:
            _UA_VERSION = "0.0.0"
    return _UA_VERSION


class HttpTransport:
    """HTTP transport for the bot service.

    Example:
        >>> transport = HttpTransport(api_key="...")
        >>> async with transport.stream_query("Claude-3.5-Sonnet", request) as chunks:
        ...     async for chunk in chunks:
        ...         process(chunk)
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        proxy: str | None = None,
        upload_url: str = DEFAULT_UPLOAD_URL,
    ) -> None:
        """Initialize HTTP transport.

        Args:
            api_key: Explicit API key (overrides env/keyring)
            base_url: Override base URL (default: POE_BASE_URL or api.poe.com)
            timeout: Read timeout in seconds
            proxy: Proxy URL
            upload_url: File upload endpoint
        """
        self._api_key = resolve_api_key(api_key)
        self._base_url = (base_url or os.getenv("POE_BASE_URL") or DEFAULT_BASE_URL).rstrip("/")
        self._upload_url = upload_url

        self._timeout = timeout
        if self._timeout is None:
            env_timeout = os.getenv("POE_HTTP_TIMEOUT_SECS")
            if env_timeout:
                with suppress(ValueError):
                    self._timeout = float(env_timeout)
        if self._timeout is None:
            self._timeout = _DEFAULT_TIMEOUT

        # Default to a direct connection unless trust_env is enabled
        if proxy is not None:
            self._proxy = proxy
        elif _trust_env_enabled():
            self._proxy = os.getenv("POE_PROXY_URL")
        else:
            self._proxy = None

        self._client: httpx.AsyncClient | None = None

    @property
    def base_url(self) -> str:
        """Resolved base URL."""
        return self._base_url

    @property
    def timeout(self) -> float:
        """Resolved read timeout in seconds."""
        return self._timeout  # type: ignore[return-value]

    @property
    def has_api_key(self) -> bool:
        """Check if an API key was resolved."""
        return bool(self._api_key)

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=httpx.Timeout(self._timeout, connect=_DEFAULT_CONNECT_TIMEOUT),
                proxy=self._proxy,
                http2=_http2_enabled(),
                trust_env=_trust_env_enabled(),
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _build_headers(self, extra_headers: dict[str, str] | None = None) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": f"poe-client-python/{_get_ua_version()}",
        }
        if self._api_key:
            headers.update(get_auth_header(self._api_key))
        if extra_headers:
            headers.update(extra_headers)
        return headers

    def _wrap_http_error(self, e: httpx.HTTPError, url: str) -> TransportError:
        if isinstance(e, httpx.ConnectError):
            message = f"Connection failed: {e}"
        elif isinstance(e, httpx.TimeoutException):
            message = f"Request timed out: {e}"
        else:
            message = f"HTTP error: {e}"
        return TransportError(message, url=url, cause=e)

    @staticmethod
    def _raise_for_status(response: httpx.Response, body_text: bytes) -> None:
        if response.status_code < 400:
            return
        body = None
        with suppress(ValueError):
            parsed = json_module.loads(body_text)
            if isinstance(parsed, dict):
                body = parsed
        raise RemoteError.from_response(
            status_code=response.status_code,
            body=body,
            headers=dict(response.headers),
        )

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Make an HTTP request.

        Args:
            method: HTTP method
            path: Request path (relative to base URL)
            json: JSON body
            params: Query parameters

        Returns:
            HTTP response

        Raises:
            TransportError: On network/connection errors
            RemoteError: On error responses (4xx, 5xx)
        """
        client = self._get_client()
        logger.debug("HTTP request", method=method, path=path)

        try:
            response = await client.request(
                method=method,
                url=path,
                json=json,
                headers=self._build_headers(),
                params=params,
            )
        except httpx.HTTPError as e:
            raise self._wrap_http_error(e, f"{self._base_url}{path}") from e

        self._raise_for_status(response, response.content)
        return response

    @asynccontextmanager
    async def stream_query(
        self, bot: str, request: QueryRequest
    ) -> AsyncIterator[AsyncIterator[bytes]]:
        """Open the reply stream of one bot query.

        Args:
            bot: Bot name
            request: Query body

        Yields:
            Async iterator over the raw response bytes

        Raises:
            TransportError: On network/connection errors
            RemoteError: If the service rejects the query
        """
        client = self._get_client()
        path = f"/bot/{bot}"
        headers = self._build_headers({"Accept": "text/event-stream"})
        logger.debug("Opening reply stream", bot=bot, message_id=request.message_id)

        try:
            async with client.stream(
                "POST", path, json=request.to_payload(), headers=headers
            ) as response:
                if response.status_code >= 400:
                    self._raise_for_status(response, await response.aread())
                yield response.aiter_bytes()
        except httpx.HTTPError as e:
            raise self._wrap_http_error(e, f"{self._base_url}{path}") from e

    async def fetch_models(self) -> list[dict[str, Any]]:
        """Fetch the bot catalog.

        Returns:
            Raw catalog entries in server order
        """
        response = await self.request("GET", "/v1/models")
        try:
            data = response.json()
        except ValueError as e:
            raise TransportError(
                f"Invalid JSON from models endpoint: {e}",
                url=f"{self._base_url}/v1/models",
                cause=e,
            ) from e
        entries = data.get("data", []) if isinstance(data, dict) else data
        return list(entries or [])

    async def upload_file(
        self,
        path: str | Path | None = None,
        *,
        url: str | None = None,
        content_type: str | None = None,
    ) -> Attachment:
        """Upload a local file or register a remote one as an attachment.

        Args:
            path: Local file to upload
            url: Remote file the service should download instead
            content_type: MIME type override

        Returns:
            Attachment referencing the uploaded file

        Raises:
            ValueError: If neither or both of path and url are given
        """
        if (path is None) == (url is None):
            raise ValueError("Provide exactly one of path or url")

        client = self._get_client()
        headers = {"Authorization": self._api_key or ""}
        name: str | None = None

        try:
            if path is not None:
                file_path = Path(path)
                name = file_path.name
                mime = content_type or mimetypes.guess_type(name)[0] or "application/octet-stream"
                with file_path.open("rb") as fh:
                    response = await client.post(
                        self._upload_url,
                        headers=headers,
                        files={"file": (name, fh, mime)},
                    )
            else:
                name = url.rsplit("/", 1)[-1] or None  # type: ignore[union-attr]
                response = await client.post(
                    self._upload_url,
                    headers=headers,
                    data={"download_url": url},
                )
        except httpx.HTTPError as e:
            raise self._wrap_http_error(e, self._upload_url) from e

        self._raise_for_status(response, response.content)
        data = response.json()
        logger.debug("Uploaded attachment", name=name, mime_type=data.get("mime_type"))
        return Attachment(
            url=data["attachment_url"],
            content_type=content_type or data.get("mime_type") or "application/octet-stream",
            name=name,
        )

    async def __aenter__(self) -> HttpTransport:
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()
