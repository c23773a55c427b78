"""
asgi.py -- Process entry point for Freightgate.

This is the ONLY place that reads process configuration. Settings() raises
if JWT_SECRET_KEY is missing or too short, so a misconfigured deployment
dies here at import time instead of failing on its first login.

Run with:  uvicorn asgi:app --reload
"""

from api.main import create_app
from core.config import get_settings

app = create_app(get_settings())
