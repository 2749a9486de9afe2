"""
WebSocket URL routing for the chat application.

URL Patterns:
    ws/chat/ - One connection per client; the consumer serves every
               conversation of the connected user

Authentication:
    JWT access token as query parameter (?token=<jwt_access_token>) or
    subprotocol; see chat.middleware.JWTAuthMiddleware.
"""

from django.urls import path

from chat import consumers

websocket_urlpatterns = [
    path("ws/chat/", consumers.ChatConsumer.as_asgi()),
]
