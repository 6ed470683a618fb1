# apps/core/tests.py
from io import StringIO
from unittest import mock

from django.core.cache import cache
from django.core.management import call_command
from django.http import JsonResponse
from django.test import TestCase, RequestFactory

from apps.core.middleware import (
    CorrelationIDMiddleware,
    GlobalKillSwitchMiddleware,
    KILL_SWITCH_KEY,
    get_correlation_id,
)
from apps.locations.models import Location
from apps.outages.models import Outage


class MiddlewareTestCase(TestCase):
    def setUp(self):
        self.factory = RequestFactory()
        self.get_response = lambda req: JsonResponse({"status": "ok"})
        cache.clear()

    def tearDown(self):
        cache.clear()

    def test_correlation_id_generation(self):
        middleware = CorrelationIDMiddleware(self.get_response)
        request = self.factory.get("/")
        response = middleware(request)

        self.assertTrue(response.has_header("X-Request-ID"))
        self.assertIsNotNone(request.correlation_id)
        self.assertEqual(response["X-Request-ID"], request.correlation_id)

    def test_correlation_id_propagated_from_header(self):
        seen = {}

        def get_response(req):
            seen["id"] = get_correlation_id()
            return JsonResponse({"status": "ok"})

        middleware = CorrelationIDMiddleware(get_response)
        response = middleware(self.factory.get("/", HTTP_X_REQUEST_ID="abc-123"))

        self.assertEqual(response["X-Request-ID"], "abc-123")
        self.assertEqual(seen["id"], "abc-123")
        # Reset once the request is done
        self.assertIsNone(get_correlation_id())

    def test_kill_switch_active(self):
        cache.set(KILL_SWITCH_KEY, True)
        middleware = GlobalKillSwitchMiddleware(self.get_response)

        # Writes are blocked
        response = middleware(self.factory.post("/"))
        self.assertEqual(response.status_code, 503)

        # Reads pass
        response_get = middleware(self.factory.get("/"))
        self.assertEqual(response_get.status_code, 200)

    def test_kill_switch_inactive(self):
        cache.delete(KILL_SWITCH_KEY)
        middleware = GlobalKillSwitchMiddleware(self.get_response)

        response = middleware(self.factory.post("/"))
        self.assertEqual(response.status_code, 200)

    def test_kill_switch_fails_closed_when_cache_down(self):
        middleware = GlobalKillSwitchMiddleware(self.get_response)

        with mock.patch("apps.core.middleware.cache.get", side_effect=ConnectionError("redis down")):
            response = middleware(self.factory.delete("/"))

        self.assertEqual(response.status_code, 503)


class HealthCheckTestCase(TestCase):
    def test_health_check_ok(self):
        response = self.client.get("/health/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["services"], {"db": "ok", "cache": "ok"})

    def test_health_check_cache_failure(self):
        with mock.patch("apps.core.views.cache.set", side_effect=ConnectionError("redis down")):
            response = self.client.get("/health/")

        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.json()["services"]["cache"], "unreachable")


class NotFoundTestCase(TestCase):
    def test_unknown_endpoint_returns_json_404(self):
        response = self.client.get("/api/v1/does-not-exist/")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["error"]["code"], "not_found")


class SeedOutagesCommandTestCase(TestCase):
    def test_seed_creates_records_without_weather_calls(self):
        with mock.patch("apps.weather.services.WeatherService.get_current_weather") as weather:
            call_command("seed_outages", users=1, locations=2, outages=5, stdout=StringIO())

        weather.assert_not_called()
        self.assertEqual(Location.objects.count(), 2)
        self.assertEqual(Outage.objects.count(), 5)
        for outage in Outage.objects.all():
            self.assertEqual(outage.day_of_week, outage.start_time.isoweekday() % 7)
            if outage.end_time is not None:
                self.assertGreater(outage.end_time, outage.start_time)
