"""
backend/wsgi.py — WSGI entry point.

  gunicorn "backend.wsgi:app"
  FLASK_APP=backend.wsgi flask generate-recurring
"""

import os

from backend.app import create_app

app = create_app(os.getenv("FLASK_ENV", "development"))
