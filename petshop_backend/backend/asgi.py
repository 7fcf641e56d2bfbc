# backend/asgi.py
"""
ASGI entrypoint for the petshop ledger.
Uses dev settings unless DJANGO_SETTINGS_MODULE is set by the deployment.
"""

import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "backend.settings.dev")

application = get_asgi_application()
