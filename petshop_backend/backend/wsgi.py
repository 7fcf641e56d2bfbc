# backend/wsgi.py
"""
WSGI entrypoint for the petshop ledger.
Uses dev settings unless DJANGO_SETTINGS_MODULE is set by the deployment.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "backend.settings.dev")

application = get_wsgi_application()
