import logging
import traceback

from django.conf import settings
from django.http import Http404
from rest_framework import exceptions as drf_exceptions
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class BusinessLogicException(Exception):
    """
    Base class for domain-specific errors (e.g., DuplicateLocation, AlreadyEnded).
    These are expected operational errors, not 500s.
    """
    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "invalid_request"

    def __init__(self, message, code=None, details=None):
        self.message = message
        self.code = code or self.default_code
        self.details = details
        super().__init__(message)


class RecordNotFound(BusinessLogicException):
    status_code = status.HTTP_404_NOT_FOUND
    default_code = "not_found"

    def __init__(self, model_name="resource", message=None, **kwargs):
        self.model_name = model_name
        super().__init__(
            message or f"The requested {model_name} could not be found or does not exist.",
            **kwargs,
        )


class LocationNotFound(RecordNotFound):
    default_code = "location_not_found"

    def __init__(self, location_id):
        self.location_id = location_id
        super().__init__(
            "Location",
            message="The selected location is invalid.",
            details={"location_id": [f"Location {location_id} does not exist."]},
        )


class Forbidden(BusinessLogicException):
    status_code = status.HTTP_403_FORBIDDEN
    default_code = "forbidden"

    def __init__(self, message="You do not have permission to access this resource.", **kwargs):
        super().__init__(message, **kwargs)


class ValidationFailed(BusinessLogicException):
    """
    Input shape/range violation. `details` maps field names to message lists.
    """
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_code = "validation_failed"

    def __init__(self, errors, message="The provided data was invalid."):
        super().__init__(message, details=errors)


class DuplicateLocation(BusinessLogicException):
    status_code = status.HTTP_409_CONFLICT
    default_code = "duplicate_location"

    def __init__(self, existing):
        self.existing = existing
        super().__init__("A location with these coordinates already exists")


class HasDependents(BusinessLogicException):
    status_code = status.HTTP_409_CONFLICT
    default_code = "has_dependents"

    def __init__(self, message="Cannot delete location with associated outages", count=0):
        self.count = count
        super().__init__(message)


class AlreadyEnded(BusinessLogicException):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_code = "already_ended"

    def __init__(self, message="This outage has already been ended."):
        super().__init__(message)


class InvalidEndTime(BusinessLogicException):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_code = "invalid_end_time"

    def __init__(self, message="End time must be after start time."):
        super().__init__(message, details={"end_time": [message]})


class WeatherServiceException(BusinessLogicException):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_code = "weather_unavailable"

    def __init__(self, coordinates, message="Weather service is currently unavailable. Please try again later."):
        self.coordinates = coordinates
        super().__init__(message)


def _error_body(code, message, error_type, details=None):
    body = {"code": code, "message": message, "type": error_type}
    if details:
        body["details"] = details
    return {"error": body}


def _debug_body(exc):
    frames = traceback.extract_tb(exc.__traceback__)
    return {
        "message": str(exc),
        "exception": type(exc).__name__,
        "trace": [
            {"file": f.filename, "line": f.lineno, "function": f.name}
            for f in frames
        ],
    }


def custom_exception_handler(exc, context):
    """
    Custom DRF Exception Handler.
    Renders domain errors and DRF errors with one envelope:
    {"error": {"code": ..., "message": ..., "type": ...}}.
    """
    if isinstance(exc, drf_exceptions.PermissionDenied):
        exc = Forbidden(str(exc.detail))

    if isinstance(exc, BusinessLogicException):
        return Response(
            _error_body(exc.code, exc.message, type(exc).__name__, exc.details),
            status=exc.status_code,
        )

    if isinstance(exc, Http404):
        exc = drf_exceptions.NotFound("The requested resource could not be found.")

    response = exception_handler(exc, context)

    if response is None:
        view = context.get("view")
        logger.exception(
            f"Unhandled error in {type(view).__name__ if view else 'unknown view'}",
            exc_info=exc,
        )
        if settings.DEBUG:
            body = {"error": dict(code="server_error", type="ServerError", **_debug_body(exc))}
        else:
            body = _error_body(
                "server_error",
                "An unexpected error occurred. If this problem persists, please contact support.",
                "ServerError",
            )
        return Response(body, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    if isinstance(exc, drf_exceptions.ValidationError):
        response.status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
        response.data = _error_body(
            "validation_failed",
            "The provided data was invalid.",
            "ValidationFailed",
            response.data,
        )
        return response

    if isinstance(exc, drf_exceptions.APIException) and "error" not in response.data:
        detail = response.data.get("detail", exc.detail) if isinstance(response.data, dict) else exc.detail
        response.data = _error_body(
            getattr(exc, "default_code", "error"),
            str(detail),
            type(exc).__name__,
        )

    return response
