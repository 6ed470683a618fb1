# apps/weather/tests.py
from unittest import mock

import requests
from django.test import SimpleTestCase, override_settings

from apps.weather.services import WeatherService, WeatherSnapshot, WeatherUnavailable

PAYLOAD = {
    "location": {"name": "Lagos", "lat": 6.45, "lon": 3.4},
    "current": {
        "temp_c": 29.5,
        "condition": {"text": "Patchy rain possible"},
        "wind_kph": 13.0,
        "precip_mm": 0.4,
        "humidity": 79,
        "pressure_mb": 1011.0,
        "cloud": 75,
    },
}


def _response(status_code=200, payload=None, text=""):
    resp = mock.Mock()
    resp.status_code = status_code
    resp.ok = 200 <= status_code < 400
    resp.text = text
    if isinstance(payload, Exception):
        resp.json.side_effect = payload
    else:
        resp.json.return_value = payload
    return resp


@override_settings(
    WEATHER_API_URL="https://weather.test/v1/",
    WEATHER_API_KEY="secret-key",
    WEATHER_API_TIMEOUT=5,
)
class WeatherServiceTestCase(SimpleTestCase):
    def setUp(self):
        self.session = mock.Mock()
        self.service = WeatherService(session=self.session)

    def test_success_maps_provider_fields(self):
        self.session.get.return_value = _response(payload=PAYLOAD)

        result = self.service.get_current_weather(6.45, 3.4)

        self.assertIsInstance(result, WeatherSnapshot)
        self.assertEqual(result.condition, "Patchy rain possible")
        self.assertEqual(result.temperature_c, 29.5)
        self.assertEqual(result.wind_kph, 13.0)
        self.assertEqual(result.precipitation_mm, 0.4)
        self.assertEqual(result.as_outage_fields(), {
            "weather_condition": "Patchy rain possible",
            "temperature": 29.5,
            "wind_speed": 13.0,
            "precipitation": 0.4,
            "humidity": 79,
            "pressure": 1011.0,
            "cloud": 75,
        })

    def test_request_shape(self):
        self.session.get.return_value = _response(payload=PAYLOAD)

        self.service.get_current_weather(6.45, 3.4)

        self.session.get.assert_called_once_with(
            "https://weather.test/v1/current.json",
            params={"key": "secret-key", "q": "6.45,3.4", "aqi": "no"},
            timeout=5,
        )

    def test_optional_fields_may_be_missing(self):
        payload = {"current": {k: v for k, v in PAYLOAD["current"].items() if k in ("temp_c", "condition", "wind_kph", "precip_mm")}}
        self.session.get.return_value = _response(payload=payload)

        result = self.service.get_current_weather(1, 2)

        self.assertIsInstance(result, WeatherSnapshot)
        self.assertIsNone(result.humidity)
        self.assertIsNone(result.pressure_mb)
        self.assertIsNone(result.cloud_pct)

    def test_non_success_status(self):
        self.session.get.return_value = _response(status_code=401, text='{"error": {"code": 2006}}')

        with self.assertLogs("apps.weather.services", level="ERROR") as logs:
            result = self.service.get_current_weather(6.45, 3.4)

        self.assertIsInstance(result, WeatherUnavailable)
        self.assertEqual(result.reason, "upstream_error")
        self.assertEqual(result.status_code, 401)
        self.assertEqual(result.coordinates, "6.45,3.4")
        self.assertEqual(logs.records[0].metadata["status"], 401)

    def test_malformed_payload(self):
        self.session.get.return_value = _response(payload={"current": {"temp_c": "warm"}})

        with self.assertLogs("apps.weather.services", level="ERROR"):
            result = self.service.get_current_weather(6.45, 3.4)

        self.assertIsInstance(result, WeatherUnavailable)
        self.assertEqual(result.reason, "malformed_payload")

    def test_invalid_json(self):
        self.session.get.return_value = _response(payload=ValueError("Expecting value"), text="<html>")

        with self.assertLogs("apps.weather.services", level="ERROR"):
            result = self.service.get_current_weather(6.45, 3.4)

        self.assertEqual(result.reason, "malformed_payload")

    def test_timeout(self):
        self.session.get.side_effect = requests.Timeout("read timed out")

        with self.assertLogs("apps.weather.services", level="ERROR"):
            result = self.service.get_current_weather(6.45, 3.4)

        self.assertIsInstance(result, WeatherUnavailable)
        self.assertEqual(result.reason, "timeout")
        self.assertIsNone(result.status_code)

    def test_connection_error(self):
        self.session.get.side_effect = requests.ConnectionError("refused")

        with self.assertLogs("apps.weather.services", level="ERROR"):
            result = self.service.get_current_weather(6.45, 3.4)

        self.assertEqual(result.reason, "connection_error")

    def test_single_attempt_per_call(self):
        self.session.get.side_effect = requests.ConnectionError("refused")

        with self.assertLogs("apps.weather.services", level="ERROR"):
            self.service.get_current_weather(6.45, 3.4)

        self.assertEqual(self.session.get.call_count, 1)

    def test_logged_body_is_truncated(self):
        self.session.get.return_value = _response(status_code=500, text="x" * 5000)

        with self.assertLogs("apps.weather.services", level="ERROR") as logs:
            self.service.get_current_weather(6.45, 3.4)

        self.assertEqual(len(logs.records[0].metadata["body"]), WeatherService.BODY_LOG_LIMIT)
