"""
WSGI config for airwatch project (HTTP only; WebSockets need the ASGI app).
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'airwatch.settings')

application = get_wsgi_application()
