# apps/weather/services.py
import logging
from dataclasses import dataclass, asdict
from typing import Optional, Union

import requests
from django.conf import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WeatherSnapshot:
    condition: str
    temperature_c: float
    wind_kph: float
    precipitation_mm: float
    humidity: Optional[int] = None
    pressure_mb: Optional[float] = None
    cloud_pct: Optional[int] = None

    def as_outage_fields(self) -> dict:
        """Maps the snapshot onto Outage column names."""
        return {
            "weather_condition": self.condition,
            "temperature": self.temperature_c,
            "wind_speed": self.wind_kph,
            "precipitation": self.precipitation_mm,
            "humidity": self.humidity,
            "pressure": self.pressure_mb,
            "cloud": self.cloud_pct,
        }


@dataclass(frozen=True)
class WeatherUnavailable:
    latitude: float
    longitude: float
    reason: str
    status_code: Optional[int] = None

    @property
    def coordinates(self) -> str:
        return f"{self.latitude},{self.longitude}"


WeatherResult = Union[WeatherSnapshot, WeatherUnavailable]


def _optional(value, cast):
    if value is None:
        return None
    return cast(value)


class WeatherService:
    """
    Gateway to the current-conditions endpoint of the weather provider.

    Single attempt per call: no retries and no caching. Failures come back as
    a `WeatherUnavailable` value, never as an exception, so the caller decides
    what the user sees.
    """
    BODY_LOG_LIMIT = 1000

    def __init__(self, base_url=None, api_key=None, timeout=None, session=None):
        self.base_url = (base_url or settings.WEATHER_API_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.WEATHER_API_KEY
        self.timeout = timeout or settings.WEATHER_API_TIMEOUT
        self.session = session or requests

    def get_current_weather(self, latitude, longitude) -> WeatherResult:
        coordinates = f"{latitude},{longitude}"
        try:
            resp = self.session.get(
                f"{self.base_url}/current.json",
                params={"key": self.api_key, "q": coordinates, "aqi": "no"},
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            return self._failure(latitude, longitude, "timeout", error=e)
        except requests.RequestException as e:
            return self._failure(latitude, longitude, "connection_error", error=e)

        if not resp.ok:
            return self._failure(
                latitude, longitude, "upstream_error",
                status_code=resp.status_code, body=resp.text,
            )

        try:
            return self.parse_current(resp.json())
        except (ValueError, KeyError, TypeError) as e:
            return self._failure(
                latitude, longitude, "malformed_payload",
                status_code=resp.status_code, body=resp.text, error=e,
            )

    @staticmethod
    def parse_current(payload) -> WeatherSnapshot:
        """
        Translates the provider payload. Raises KeyError/TypeError/ValueError
        when required fields are missing or not numeric.
        """
        current = payload["current"]
        return WeatherSnapshot(
            condition=str(current["condition"]["text"]),
            temperature_c=float(current["temp_c"]),
            wind_kph=float(current["wind_kph"]),
            precipitation_mm=float(current["precip_mm"]),
            humidity=_optional(current.get("humidity"), int),
            pressure_mb=_optional(current.get("pressure_mb"), float),
            cloud_pct=_optional(current.get("cloud"), int),
        )

    def _failure(self, latitude, longitude, reason, status_code=None, body=None, error=None):
        failure = WeatherUnavailable(
            latitude=latitude, longitude=longitude, reason=reason, status_code=status_code,
        )
        logger.error(
            f"Weather API {reason.replace('_', ' ')}",
            extra={"metadata": {
                **asdict(failure),
                "coordinates": failure.coordinates,
                "status": status_code,
                "body": (body or "")[: self.BODY_LOG_LIMIT],
                "error": str(error) if error else None,
            }},
        )
        return failure
