"""
ASGI config for the messaging backend.

This file exposes the ASGI callable as a module-level variable named
`application`. It serves:
- HTTP requests (REST API, admin, docs) via Django
- The chat WebSocket (ws/chat/) via Django Channels

For more information on this file, see:
https://docs.djangoproject.com/en/5.2/howto/deployment/asgi/
"""

import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

# Load settings and the app registry before importing anything touching models
django_asgi_app = get_asgi_application()

from channels.routing import ProtocolTypeRouter, URLRouter  # noqa: E402
from channels.security.websocket import AllowedHostsOriginValidator  # noqa: E402

from chat.middleware import JWTAuthMiddleware  # noqa: E402
from chat.routing import websocket_urlpatterns  # noqa: E402

application = ProtocolTypeRouter(
    {
        "http": django_asgi_app,
        # Origin check against ALLOWED_HOSTS, then JWT (?token= or
        # subprotocol) resolves scope["user"], then path routing
        "websocket": AllowedHostsOriginValidator(
            JWTAuthMiddleware(URLRouter(websocket_urlpatterns))
        ),
    }
)
