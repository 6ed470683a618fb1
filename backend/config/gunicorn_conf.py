# ==============================================================================
# GUNICORN CONFIGURATION (outage tracker API)
# gunicorn -c config/gunicorn_conf.py config.asgi:application
# ==============================================================================

import os
import multiprocessing

# ==============================================================================
# WORKERS
# ==============================================================================
# (2 * CPU_COUNT) + 1 unless GUNICORN_WORKERS is set.
# Outage creation blocks on the weather provider for up to WEATHER_API_TIMEOUT,
# so keep at least a handful of workers even on single-core hosts.
CPU_COUNT = multiprocessing.cpu_count()
DEFAULT_WORKERS = max((CPU_COUNT * 2) + 1, 3)
workers = int(os.getenv("GUNICORN_WORKERS", DEFAULT_WORKERS))

worker_class = "uvicorn.workers.UvicornWorker"

# ==============================================================================
# SOCKET
# ==============================================================================
port = int(os.getenv("PORT", 8000))
bind = [f"0.0.0.0:{port}"]

proc_name = "outage-tracker-api"

# ==============================================================================
# TIMEOUTS
# ==============================================================================
timeout = int(os.getenv("GUNICORN_TIMEOUT", 60))
graceful_timeout = int(os.getenv("GUNICORN_GRACEFUL_TIMEOUT", 30))
keepalive = int(os.getenv("GUNICORN_KEEPALIVE", 5))

# ==============================================================================
# LOGGING (stdout/stderr for containers)
# ==============================================================================
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" %(D)s'
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("GUNICORN_LOG_LEVEL", "info")

# ==============================================================================
# WORKER RECYCLING
# ==============================================================================
max_requests = int(os.getenv("GUNICORN_MAX_REQUESTS", 1000))
max_requests_jitter = int(os.getenv("GUNICORN_MAX_REQUESTS_JITTER", 100))

# Trust X-Forwarded-* from the platform's reverse proxy
forwarded_allow_ips = "*"

preload_app = True


def when_ready(server):
    server.log.info(f"Outage tracker API ready with {workers} workers")


def on_starting(server):
    server.log.info(f"Starting gunicorn: {workers} x {worker_class} on 0.0.0.0:{port}, timeout {timeout}s")


def on_exit(server):
    server.log.info("Outage tracker API shutting down")
