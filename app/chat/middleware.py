"""
WebSocket authentication middleware.

Authenticates WebSocket connections with a SimpleJWT access token and
attaches the user to scope["user"] (AnonymousUser when the token is
missing, invalid, expired or belongs to an inactive account).

Token Passing Methods:
    1. Query string: ws://host/ws/chat/?token=<jwt_token>
    2. Subprotocol: Sec-WebSocket-Protocol: jwt, <jwt_token>

Usage in config/asgi.py:
    from chat.middleware import JWTAuthMiddleware

    application = ProtocolTypeRouter({
        "websocket": JWTAuthMiddleware(
            URLRouter(websocket_urlpatterns)
        ),
    })
"""

from __future__ import annotations

import logging

from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import AccessToken

from core.helpers import get_query_param

logger = logging.getLogger(__name__)

JWT_SUBPROTOCOL = "jwt"


def token_from_scope(scope) -> str | None:
    """
    Return the access token of a connection.

    The query string wins over the subprotocol.
    """
    token = get_query_param(scope, "token")
    if token:
        return token

    subprotocols = scope.get("subprotocols") or []
    if len(subprotocols) >= 2 and subprotocols[0] == JWT_SUBPROTOCOL:
        return subprotocols[1]
    return None


@database_sync_to_async
def get_user_for_token(token: str):
    """
    Validate an access token and load its user.

    Returns:
        The active user, or AnonymousUser
    """
    User = get_user_model()

    try:
        access_token = AccessToken(token)
        user = User.objects.get(id=access_token["user_id"])
    except TokenError as e:
        logger.warning(f"Invalid JWT token on WebSocket: {e}")
        return AnonymousUser()
    except (KeyError, User.DoesNotExist):
        logger.warning("User not found for WebSocket token")
        return AnonymousUser()

    if not user.is_active:
        logger.warning(f"Inactive user attempted WebSocket connection: {user.id}")
        return AnonymousUser()
    return user


class JWTAuthMiddleware(BaseMiddleware):
    """
    JWT authentication middleware for WebSocket connections.

    Usage:
        # Client connection with query string
        ws = new WebSocket("ws://host/ws/chat/?token=eyJ...")

        # Client connection with subprotocol
        ws = new WebSocket("ws://host/ws/chat/", ["jwt", "eyJ..."])
    """

    async def __call__(self, scope, receive, send):
        scope = dict(scope)
        token = token_from_scope(scope)
        scope["user"] = await get_user_for_token(token) if token else AnonymousUser()
        return await super().__call__(scope, receive, send)
