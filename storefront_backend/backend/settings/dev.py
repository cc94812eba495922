"""
PATH: backend/settings/dev.py

LOCAL DEVELOPMENT SETTINGS
- SQLite by default (DATABASE_URL overrides)
- Vite dev server origin allowed
- Store rule/logging env overrides still apply
"""

from __future__ import annotations

from .base import *  # noqa: F403
from .base import LOGGING, env

DEBUG = True

ALLOWED_HOSTS = env.list("ALLOWED_HOSTS", default=["localhost", "127.0.0.1"])

CORS_ALLOWED_ORIGINS = env.list("CORS_ALLOWED_ORIGINS", default=["http://localhost:5173"])
CSRF_TRUSTED_ORIGINS = env.list("CSRF_TRUSTED_ORIGINS", default=["http://localhost:5173"])
CORS_ALLOW_CREDENTIALS = True

# service logs (stock, coupons, orders, payments) are the useful ones locally
LOGGING["loggers"].update(
    {
        app: {"handlers": ["console"], "level": "DEBUG", "propagate": False}
        for app in ("products", "coupons", "orders", "payments")
    }
)
