"""
Core views providing infrastructure endpoints.

This module contains views that are not part of the chat domain but are
needed to operate the service, such as health checks.
"""

import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import DatabaseError, connection
from django.http import JsonResponse

logger = logging.getLogger(__name__)


def health_check(request):
    """
    Health check endpoint for monitoring and orchestration.

    Returns:
        JsonResponse with status and component health:
        - status: "healthy" or "unhealthy"
        - database: "connected" or "disconnected"
        - channel_layer: "connected", "disconnected" or "not_configured"

    HTTP Status Codes:
        200: Database reachable
        503: Database unreachable

    Note:
        The channel layer only degrades the report. Clients fall back to
        polling the REST API when realtime delivery is down.
    """
    health_status = {
        "status": "healthy",
        "database": "unknown",
        "channel_layer": "unknown",
    }
    is_healthy = True

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        health_status["database"] = "connected"
    except DatabaseError:
        logger.exception("Health check: database unreachable")
        health_status["database"] = "disconnected"
        health_status["status"] = "unhealthy"
        is_healthy = False

    layer = get_channel_layer()
    if layer is None:
        health_status["channel_layer"] = "not_configured"
    else:
        try:
            async_to_sync(layer.group_send)("health-check", {"type": "health.ping"})
            health_status["channel_layer"] = "connected"
        except Exception:  # noqa: BLE001 - any backend failure only degrades
            logger.warning("Health check: channel layer unreachable", exc_info=True)
            health_status["channel_layer"] = "disconnected"

    return JsonResponse(health_status, status=200 if is_healthy else 503)
