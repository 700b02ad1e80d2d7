"""
ASGI config for the pharmacy project.

Only HTTP is served; the back-office has no realtime channels.
"""
import os

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "pharmacy.settings")

from django.core.asgi import get_asgi_application  # noqa: E402

application = get_asgi_application()
