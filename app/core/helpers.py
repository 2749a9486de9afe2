"""
Helper functions for common infrastructure operations.

This module provides domain-agnostic utility functions for:
- Token generation (cryptographic)
- Query string parsing for WebSocket scopes

Usage:
    from core.helpers import generate_token, get_query_param

    token = generate_token(32)
    raw = get_query_param(scope, "token")
"""

from __future__ import annotations

import secrets
from urllib.parse import parse_qs


def generate_token(length: int = 32) -> str:
    """
    Generate a cryptographically secure random token.

    Args:
        length: Number of bytes (resulting string is 2x length in hex)

    Returns:
        Hexadecimal token string

    Example:
        token = generate_token(32)  # Returns 64-character hex string
    """
    return secrets.token_hex(length)


def get_query_param(scope: dict, name: str) -> str | None:
    """
    Read a single query-string parameter from an ASGI scope.

    Args:
        scope: ASGI connection scope
        name: Parameter name

    Returns:
        First value for the parameter, or None if absent

    Example:
        token = get_query_param(scope, "token")
    """
    raw = scope.get("query_string", b"")
    if isinstance(raw, bytes):
        raw = raw.decode("latin-1")
    values = parse_qs(raw).get(name)
    return values[0] if values else None
