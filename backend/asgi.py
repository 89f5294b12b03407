"""
ASGI entrypoint: expose `app` pour les process managers (uvicorn, gunicorn + UvicornWorker).
Toute la configuration est centralisée dans backend.app_setup.factory.
"""

from backend.app import app

__all__ = ["app"]
