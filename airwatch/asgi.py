"""
ASGI config for airwatch project.

It exposes the ASGI callable as a module-level variable named ``application``.

For more information on this file, see
https://docs.djangoproject.com/en/5.2/howto/deployment/asgi/
"""

import os

from channels.routing import ProtocolTypeRouter, URLRouter
from channels.security.websocket import AllowedHostsOriginValidator
from django.core.asgi import get_asgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'airwatch.settings')

# Initialize Django ASGI application early to ensure the AppRegistry
# is populated before importing code that may import ORM models.
django_asgi_app = get_asgi_application()

from air import routing as air_routing

application = ProtocolTypeRouter({
    "http": django_asgi_app,

    # Dashboard clients are anonymous; only the host allow-list is enforced
    "websocket": AllowedHostsOriginValidator(
        URLRouter(
            air_routing.websocket_urlpatterns
        )
    ),
})
