# config/settings_test.py
# Settings for the test suite: in-memory SQLite, local-memory cache, no network.
import os

os.environ.setdefault("DJANGO_ENV", "test")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("DJANGO_SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("WEATHER_API_KEY", "test-weather-key")
os.environ.setdefault("LOG_FORMAT", "simple")

from .settings import *  # noqa: E402,F401,F403

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "outage-tracker-tests",
    }
}

WEATHER_API_URL = "https://weather.invalid/v1"
WEATHER_API_KEY = os.environ["WEATHER_API_KEY"]

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

REST_FRAMEWORK = {
    **REST_FRAMEWORK,  # noqa: F405
    "DEFAULT_THROTTLE_RATES": {
        "user": "10000/min",
        "auth": "10000/min",
    },
}
