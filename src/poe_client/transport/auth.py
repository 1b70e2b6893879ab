"""
API key resolution utilities.

Resolves API keys from multiple sources:
1. Explicit value
2. Environment variable
3. System keyring (optional)
"""

from __future__ import annotations

import os

API_KEY_ENV = "POE_API_KEY"
KEYRING_SERVICE = "poe"


def resolve_api_key(explicit_key: str | None = None) -> str | None:
    """Resolve the API key.

    Resolution order:
    1. Explicit key if provided
    2. POE_API_KEY environment variable
    3. System keyring entry (service "poe", user "api_key"), when the
       optional keyring package is installed

    Args:
        explicit_key: Explicitly provided API key

    Returns:
        Resolved API key or None if not found
    """
    if explicit_key:
        return explicit_key

    key = os.getenv(API_KEY_ENV)
    if key:
        return key

    return _try_keyring()


def _try_keyring() -> str | None:
    try:
        import keyring
        from keyring.errors import KeyringError
    except ImportError:
        return None

    try:
        return keyring.get_password(KEYRING_SERVICE, "api_key")
    except KeyringError:
        # No usable backend (common in containers)
        return None


def get_auth_header(api_key: str | None = None) -> dict[str, str]:
    """Get the authentication header.

    Args:
        api_key: Optional explicit API key

    Returns:
        Dictionary with the Authorization header, or empty if no key
    """
    key = resolve_api_key(api_key)
    if not key:
        return {}
    return {"Authorization": f"Bearer {key}"}
