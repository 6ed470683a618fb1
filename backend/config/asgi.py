# config/asgi.py
import os
from django.core.asgi import get_asgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

# Served by gunicorn with uvicorn workers (see gunicorn_conf.py)
application = get_asgi_application()
