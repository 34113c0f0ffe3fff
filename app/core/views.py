"""
Core views providing infrastructure endpoints.

This module contains views that are not part of the chat domain but are
needed to run it, such as health checks.
"""

from django.db import DatabaseError, connection
from django.http import JsonResponse

from core.decorators import log_request


@log_request()
def health_check(request):
    """
    Health check endpoint for monitoring and orchestration.

    Reports database connectivity and the size of this process's live
    connection registry.

    HTTP Status Codes:
        200: All systems operational
        503: Database unreachable

    Example Response:
        {
            "status": "healthy",
            "database": "connected",
            "live_connections": 3
        }
    """
    from chat.presence import presence_registry

    health_status = {
        "status": "healthy",
        "database": "unknown",
        "live_connections": len(presence_registry.online_user_ids()),
    }
    is_healthy = True

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        health_status["database"] = "connected"
    except DatabaseError:
        health_status["database"] = "disconnected"
        health_status["status"] = "unhealthy"
        is_healthy = False

    status_code = 200 if is_healthy else 503

    return JsonResponse(health_status, status=status_code)
