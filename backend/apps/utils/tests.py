# apps/utils/tests.py
import json
import logging

from django.http import Http404
from django.test import SimpleTestCase, override_settings
from rest_framework import exceptions as drf_exceptions

from apps.utils.exceptions import (
    AlreadyEnded,
    DuplicateLocation,
    HasDependents,
    LocationNotFound,
    WeatherServiceException,
    custom_exception_handler,
)
from apps.utils.logging import GDPRJsonFormatter


class ExceptionHandlerTestCase(SimpleTestCase):
    def _handle(self, exc):
        return custom_exception_handler(exc, {"view": None})

    def test_domain_errors_map_to_status_and_code(self):
        cases = [
            (DuplicateLocation(existing=None), 409, "duplicate_location"),
            (HasDependents(count=2), 409, "has_dependents"),
            (AlreadyEnded(), 422, "already_ended"),
            (LocationNotFound(7), 404, "location_not_found"),
            (WeatherServiceException("1.0,2.0"), 503, "weather_unavailable"),
        ]
        for exc, status_code, code in cases:
            with self.subTest(code=code):
                response = self._handle(exc)
                self.assertEqual(response.status_code, status_code)
                self.assertEqual(response.data["error"]["code"], code)
                self.assertEqual(response.data["error"]["type"], type(exc).__name__)

    def test_validation_error_becomes_422(self):
        response = self._handle(drf_exceptions.ValidationError({"name": ["This field is required."]}))
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.data["error"]["code"], "validation_failed")
        self.assertEqual(response.data["error"]["details"], {"name": ["This field is required."]})

    def test_permission_denied_becomes_forbidden(self):
        response = self._handle(drf_exceptions.PermissionDenied())
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.data["error"]["code"], "forbidden")

    def test_http404(self):
        response = self._handle(Http404())
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data["error"]["code"], "not_found")

    @override_settings(DEBUG=False)
    def test_unhandled_error_hides_details(self):
        with self.assertLogs("apps.utils.exceptions", level="ERROR"):
            response = self._handle(RuntimeError("db password is hunter2"))
        self.assertEqual(response.status_code, 500)
        self.assertNotIn("hunter2", json.dumps(response.data))

    @override_settings(DEBUG=True)
    def test_unhandled_error_debug_body(self):
        with self.assertLogs("apps.utils.exceptions", level="ERROR"):
            response = self._handle(RuntimeError("boom"))
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.data["error"]["exception"], "RuntimeError")
        self.assertEqual(response.data["error"]["message"], "boom")


class GDPRJsonFormatterTestCase(SimpleTestCase):
    def _format(self, message, metadata=None):
        record = logging.LogRecord("apps.test", logging.INFO, __file__, 1, message, None, None)
        if metadata is not None:
            record.metadata = metadata
        return json.loads(GDPRJsonFormatter().format(record))

    def test_sensitive_metadata_is_masked(self):
        output = self._format("login", {"password": "s3cret", "nested": {"token": "abc"}, "user_id": 4})
        self.assertEqual(output["metadata"]["password"], "***MASKED***")
        self.assertEqual(output["metadata"]["nested"]["token"], "***MASKED***")
        self.assertEqual(output["metadata"]["user_id"], 4)

    def test_weather_key_in_urls_is_masked(self):
        output = self._format("GET https://api.weatherapi.com/v1/current.json?key=abc123&q=1,2")
        self.assertNotIn("abc123", output["message"])
        self.assertIn("q=1,2", output["message"])

    def test_correlation_id_defaults(self):
        output = self._format("hello")
        self.assertEqual(output["correlation_id"], "N/A")
        self.assertEqual(output["level"], "INFO")
