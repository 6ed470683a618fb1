import uuid
import logging
from contextvars import ContextVar
from django.http import JsonResponse
from django.core.cache import cache

logger = logging.getLogger(__name__)

KILL_SWITCH_KEY = "config:kill_switch:active"

# ContextVar for Request ID (Async Safe)
_correlation_id = ContextVar("correlation_id", default=None)


def get_correlation_id():
    return _correlation_id.get()


class CorrelationIDMiddleware:
    """
    Attaches a unique Request ID (Trace ID) to every request.
    """
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request_id = request.headers.get('X-Request-ID') or str(uuid.uuid4())
        token = _correlation_id.set(request_id)
        request.correlation_id = request_id

        try:
            response = self.get_response(request)
            response['X-Request-ID'] = request_id
            return response
        finally:
            _correlation_id.reset(token)


class GlobalKillSwitchMiddleware:
    """
    Emergency Stop for maintenance or critical incidents: blocks writes.
    """
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        if request.method in ["POST", "PUT", "PATCH", "DELETE"]:
            try:
                active = cache.get(KILL_SWITCH_KEY)
            except Exception as e:
                # Fail Closed: if the cache is down, block writes
                logger.error(f"Kill switch check failed: {e}")
                return JsonResponse(
                    {"error": {"code": "service_unavailable", "message": "System error"}},
                    status=503,
                )
            if active:
                return JsonResponse(
                    {"error": {"code": "maintenance_mode", "message": "System under maintenance."}},
                    status=503
                )
        return self.get_response(request)
