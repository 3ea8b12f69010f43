"""
asgi.py -- Process entry point for authkeeper.

This is the ONLY place get_settings() is called. The resulting Settings value
is passed into create_app(), which hands the auth services what they need;
no other module reads configuration from the environment.

Run with:  uvicorn asgi:app --reload
"""

from api.main import create_app
from core.config import get_settings

app = create_app(get_settings())
