# config/settings.py - PRODUCTION READY
# Outage tracker API settings.
# Designed for Railway, AWS ECS, and Docker deployments
import os
import sys
import logging
from pathlib import Path
import dj_database_url

import sentry_sdk
from sentry_sdk.integrations.django import DjangoIntegration
from sentry_sdk.integrations.redis import RedisIntegration
from corsheaders.defaults import default_headers

# Configure logging early for startup diagnostics
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# ==============================================================================
# PHASE 1: BASE CONFIGURATION
# ==============================================================================
BASE_DIR = Path(__file__).resolve().parent.parent
DJANGO_ENV = os.getenv("DJANGO_ENV", "production")

logger.info(f"Django initializing in {DJANGO_ENV} environment")

# ==============================================================================
# PHASE 2: SECURITY - STRICT PRODUCTION DEFAULTS
# ==============================================================================

# DEBUG - MUST DEFAULT TO FALSE
DEBUG = os.getenv("DEBUG", "false").lower() in ("true", "1", "yes")

if DEBUG:
    logger.warning("DEBUG mode is enabled - NEVER use in production")

# SECRET_KEY - REQUIRED IN PRODUCTION
SECRET_KEY = os.getenv("DJANGO_SECRET_KEY")
if not SECRET_KEY:
    if DEBUG:
        logger.warning("DJANGO_SECRET_KEY not set, using insecure dev key")
        SECRET_KEY = "dev-insecure-key-change-in-production"
    else:
        logger.critical("DJANGO_SECRET_KEY environment variable is REQUIRED in production")
        sys.exit(1)

# ALLOWED_HOSTS - STRICT FOR PRODUCTION
ALLOWED_HOSTS_STR = os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1,testserver" if DEBUG else "")
if not ALLOWED_HOSTS_STR and not DEBUG:
    logger.critical("ALLOWED_HOSTS environment variable is REQUIRED in production")
    sys.exit(1)
ALLOWED_HOSTS = [h.strip() for h in ALLOWED_HOSTS_STR.split(",") if h.strip()] if ALLOWED_HOSTS_STR else []

# HTTPS / PROXY / SSL CONFIGURATION
SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
USE_X_FORWARDED_HOST = True
USE_X_FORWARDED_FOR = True

if not DEBUG:
    SECURE_SSL_REDIRECT = True
    SESSION_COOKIE_SECURE = True
    CSRF_COOKIE_SECURE = True
    SECURE_HSTS_SECONDS = 31536000
    SECURE_HSTS_INCLUDE_SUBDOMAINS = True
    SECURE_HSTS_PRELOAD = True
    SESSION_COOKIE_HTTPONLY = True
    CSRF_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"
    CSRF_COOKIE_SAMESITE = "Lax"
else:
    SECURE_SSL_REDIRECT = False
    SESSION_COOKIE_SECURE = False
    CSRF_COOKIE_SECURE = False
    SESSION_COOKIE_HTTPONLY = True
    CSRF_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"
    CSRF_COOKIE_SAMESITE = "Lax"

# ==============================================================================
# PHASE 3: INSTALLED APPS
# ==============================================================================
INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",

    # Third-party
    "rest_framework",
    "django_filters",
    "corsheaders",
    "drf_spectacular",
    "django_prometheus",
    "import_export",

    # Local apps
    "apps.accounts",
    "apps.locations",
    "apps.outages",
    "apps.weather",
    "apps.core",
]

# ==============================================================================
# PHASE 4: MIDDLEWARE
# ==============================================================================
MIDDLEWARE = [
    "django_prometheus.middleware.PrometheusBeforeMiddleware",
    "corsheaders.middleware.CorsMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "apps.core.middleware.CorrelationIDMiddleware",
    "apps.core.middleware.GlobalKillSwitchMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
    "django_prometheus.middleware.PrometheusAfterMiddleware",
]

# WhiteNoise for efficient static file serving in production
if not DEBUG:
    MIDDLEWARE.insert(1, "whitenoise.middleware.WhiteNoiseMiddleware")

# ==============================================================================
# PHASE 5: URL / WSGI / ASGI
# ==============================================================================
ROOT_URLCONF = "config.urls"
WSGI_APPLICATION = "config.wsgi.application"
ASGI_APPLICATION = "config.asgi.application"

# ==============================================================================
# PHASE 6: DATABASE CONFIGURATION
# Support both DATABASE_URL and POSTGRES_* environment variables
# ==============================================================================
database_url = os.getenv("DATABASE_URL")

if not database_url:
    postgres_user = os.getenv("POSTGRES_USER")
    postgres_password = os.getenv("POSTGRES_PASSWORD")
    postgres_host = os.getenv("POSTGRES_HOST", "localhost")
    postgres_port = os.getenv("POSTGRES_PORT", "5432")
    postgres_db = os.getenv("POSTGRES_DB")

    if postgres_user and postgres_password and postgres_db:
        database_url = (
            f"postgres://{postgres_user}:{postgres_password}"
            f"@{postgres_host}:{postgres_port}/{postgres_db}"
        )
        logger.info("Built DATABASE_URL from POSTGRES_* env vars")
    elif not DEBUG:
        logger.critical("DATABASE_URL or POSTGRES_* env vars are REQUIRED in production")
        sys.exit(1)
    else:
        database_url = f"sqlite:///{BASE_DIR / 'db.sqlite3'}"
        logger.warning("Using development SQLite database")

DATABASES = {
    "default": dj_database_url.parse(database_url, conn_max_age=600)
}

if "default" in DATABASES and DATABASES["default"]:
    db_config = DATABASES["default"]
    logger.info(f"Database configured: {db_config.get('HOST')}:{db_config.get('PORT')}/{db_config.get('NAME')}")

# ==============================================================================
# PHASE 7: TEMPLATES
# ==============================================================================
TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [BASE_DIR / "templates"],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    }
]

# ==============================================================================
# PHASE 8: REDIS / CACHE
# Token blocklist and kill switch live in the cache
# ==============================================================================
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0" if DEBUG else None)

if not REDIS_URL and not DEBUG:
    logger.critical("REDIS_URL environment variable is REQUIRED in production")
    sys.exit(1)

if REDIS_URL:
    logger.info(f"Redis configured: {REDIS_URL.split('@')[0] if '@' in REDIS_URL else REDIS_URL.split('/')[0]}")

    CACHES = {
        "default": {
            "BACKEND": "django_redis.cache.RedisCache",
            "LOCATION": REDIS_URL,
            "OPTIONS": {
                "CLIENT_CLASS": "django_redis.client.DefaultClient",
                "SOCKET_CONNECT_TIMEOUT": 5,
                "SOCKET_TIMEOUT": 5,
                "RETRY_ON_TIMEOUT": True,
            }
        }
    }
else:
    logger.warning("Redis not configured, using in-memory cache (NOT for production)")
    CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
            "LOCATION": "unique-snowflake",
        }
    }

# ==============================================================================
# PHASE 9: CORS CONFIGURATION
# ==============================================================================
if DEBUG:
    CORS_ALLOW_ALL_ORIGINS = True
    logger.warning("CORS_ALLOW_ALL_ORIGINS enabled in DEBUG mode")
else:
    CORS_ALLOW_ALL_ORIGINS = False
    cors_origins_str = os.getenv("CORS_ALLOWED_ORIGINS", "")
    if not cors_origins_str:
        logger.critical("CORS_ALLOWED_ORIGINS environment variable is REQUIRED in production")
        sys.exit(1)
    CORS_ALLOWED_ORIGINS = [o.strip() for o in cors_origins_str.split(",") if o.strip()]
    logger.info(f"CORS configured for {len(CORS_ALLOWED_ORIGINS)} origins")

CORS_ALLOW_CREDENTIALS = True
CORS_EXPOSE_HEADERS = ["Content-Type", "X-CSRFToken", "X-Request-ID"]
CORS_ALLOW_HEADERS = list(default_headers) + [
    "x-request-id",
]

# ==============================================================================
# PHASE 10: LOGGING CONFIGURATION
# Stdout/stderr for container environments. JSON lines outside DEBUG.
# ==============================================================================
LOG_FORMAT = os.getenv("LOG_FORMAT", "simple" if DEBUG else "json")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "filters": {
        "correlation_id": {
            "()": "apps.utils.logging.CorrelationIdFilter",
        },
    },
    "formatters": {
        "json": {
            "()": "apps.utils.logging.GDPRJsonFormatter",
        },
        "verbose": {
            "format": "{levelname} {asctime} {module} {process:d} {thread:d} {message}",
            "style": "{",
        },
        "simple": {
            "format": "{levelname} {asctime} [{correlation_id}] {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "level": "INFO",
            "class": "logging.StreamHandler",
            "formatter": LOG_FORMAT,
            "filters": ["correlation_id"],
        },
    },
    "loggers": {
        "django": {
            "handlers": ["console"],
            "level": "INFO" if not DEBUG else "DEBUG",
            "propagate": False,
        },
        "django.db.backends": {
            "handlers": ["console"],
            "level": "WARNING",
            "propagate": False,
        },
        "apps": {
            "handlers": ["console"],
            "level": os.getenv("APP_LOG_LEVEL", "INFO"),
            "propagate": False,
        },
    },
}

# ==============================================================================
# PHASE 11: STATIC FILES
# ==============================================================================
STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

if not DEBUG:
    STORAGES = {
        "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
        "staticfiles": {"BACKEND": "whitenoise.storage.CompressedManifestStaticFilesStorage"},
    }

# ==============================================================================
# PHASE 12: AUTHENTICATION & DRF
# ==============================================================================
AUTH_USER_MODEL = "accounts.User"

AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"},
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]

SIMPLE_JWT = {
    "SIGNING_KEY": os.getenv("JWT_SIGNING_KEY", SECRET_KEY),
    "ALGORITHM": "HS256",
}

API_PAGE_SIZE = int(os.getenv("API_PAGE_SIZE", 15))
API_MAX_PAGE_SIZE = int(os.getenv("API_MAX_PAGE_SIZE", 100))

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": (
        "apps.accounts.authentication.SecureJWTAuthentication",
    ),
    "DEFAULT_PERMISSION_CLASSES": (
        "rest_framework.permissions.IsAuthenticated",
    ),
    "DEFAULT_PAGINATION_CLASS": "apps.utils.pagination.StandardResultsSetPagination",
    "PAGE_SIZE": API_PAGE_SIZE,
    "DEFAULT_FILTER_BACKENDS": [
        "django_filters.rest_framework.DjangoFilterBackend",
    ],
    "DEFAULT_THROTTLE_CLASSES": [
        "rest_framework.throttling.UserRateThrottle",
    ],
    "DEFAULT_THROTTLE_RATES": {
        "user": os.getenv("API_THROTTLE_RATE", "60/min"),
        "auth": os.getenv("AUTH_THROTTLE_RATE", "10/min"),
    },
    "EXCEPTION_HANDLER": "apps.utils.exceptions.custom_exception_handler",
    "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
}

SPECTACULAR_SETTINGS = {
    "TITLE": "Outage Tracker API",
    "DESCRIPTION": "Power outage records enriched with weather at the affected location.",
    "VERSION": "1.0.0",
    "SERVE_INCLUDE_SCHEMA": False,
}

# ==============================================================================
# PHASE 13: SECURITY HEADERS
# ==============================================================================
X_FRAME_OPTIONS = "DENY" if not DEBUG else "SAMEORIGIN"
SECURE_BROWSER_XSS_FILTER = True
SECURE_CONTENT_SECURITY_POLICY_NOSCRIPT_SOURCES = ("'none'",)

# ==============================================================================
# PHASE 14: BUSINESS LOGIC
# ==============================================================================
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

# ==============================================================================
# PHASE 15: WEATHER PROVIDER
# ==============================================================================
WEATHER_API_URL = os.getenv("WEATHER_API_URL", "https://api.weatherapi.com/v1")
WEATHER_API_KEY = os.getenv("WEATHER_API_KEY", "")
WEATHER_API_TIMEOUT = float(os.getenv("WEATHER_API_TIMEOUT", 5))

if not WEATHER_API_KEY:
    logger.warning("WEATHER_API_KEY not set, outage creation will fail with 503")

# ==============================================================================
# PHASE 16: ERROR TRACKING (OPTIONAL)
# ==============================================================================
if os.getenv("SENTRY_DSN"):
    try:
        sentry_sdk.init(
            dsn=os.getenv("SENTRY_DSN"),
            integrations=[DjangoIntegration(), RedisIntegration()],
            environment=DJANGO_ENV,
            traces_sample_rate=0.1,
            send_default_pii=False,
        )
        logger.info("Sentry error tracking initialized")
    except Exception as e:
        logger.warning(f"Failed to initialize Sentry: {e}")
else:
    logger.info("Sentry not configured (optional)")

# ==============================================================================
# STARTUP VALIDATION
# ==============================================================================
logger.info("Django configuration loaded successfully")
logger.info(f"   Environment: {DJANGO_ENV}")
logger.info(f"   DEBUG: {DEBUG}")
logger.info(f"   Allowed Hosts: {ALLOWED_HOSTS}")
logger.info(f"   Database: {DATABASES.get('default', {}).get('HOST', 'unknown')}")
