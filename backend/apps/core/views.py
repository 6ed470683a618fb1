import logging
from django.http import JsonResponse
from django.db import connection
from django.core.cache import cache

logger = logging.getLogger(__name__)


def health_check(request):
    """
    Liveness Probe.
    Returns 200 if DB/cache are up, 503 if either is unreachable.
    """
    status_data = {
        "status": "ok",
        "services": {"db": "ok", "cache": "ok"}
    }

    # 1. Check Database (Critical)
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
    except Exception as e:
        logger.critical(f"Health Check DB Fail: {e}")
        status_data["status"] = "error"
        status_data["services"]["db"] = "unreachable"
        return JsonResponse(status_data, status=503)

    # 2. Check Cache (Critical: token blocklist + kill switch live there)
    try:
        cache.set("health_ping", "pong", timeout=5)
        if cache.get("health_ping") != "pong":
            raise RuntimeError("Cache R/W mismatch")
    except Exception as e:
        logger.critical(f"Health Check Cache Fail: {e}")
        status_data["status"] = "error"
        status_data["services"]["cache"] = "unreachable"
        return JsonResponse(status_data, status=503)

    return JsonResponse(status_data, status=200)


def endpoint_not_found(request, exception=None):
    return JsonResponse(
        {"error": {
            "code": "not_found",
            "message": "Endpoint not found.",
            "type": "NotFound",
        }},
        status=404,
    )
