"""
WSGI config for the messaging backend.

The project is served through ASGI (see config.asgi) because the chat runs
over WebSockets. WSGI is kept for management tooling and REST-only
deployments.

This file exposes the WSGI callable as a module-level variable named `application`.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

application = get_wsgi_application()
