"""
Transport layer - HTTP client for the bot service.

Provides httpx-based transport with:
- Async streaming of bot replies
- Bot catalog and file upload endpoints
- Proxy configuration
- Timeout management
- API key resolution
"""

from poe_client.transport.auth import get_auth_header, resolve_api_key
from poe_client.transport.base import ChatTransport
from poe_client.transport.http import DEFAULT_BASE_URL, HttpTransport

__all__ = [
    "DEFAULT_BASE_URL",
    "ChatTransport",
    "HttpTransport",
    "get_auth_header",
    "resolve_api_key",
]
