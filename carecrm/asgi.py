"""
ASGI config for the clinical CRM project.

Only plain HTTP is served; there are no WebSocket routes.
"""
import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "carecrm.settings")

application = get_asgi_application()
