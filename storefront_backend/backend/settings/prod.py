"""
PATH: backend/settings/prod.py

PRODUCTION SETTINGS

Fail closed: the process refuses to start when any of these is missing or
unsafe:
- SECRET_KEY (and not the dev placeholder)
- ALLOWED_HOSTS
- DATABASE_URL pointing at Postgres
- https CORS/CSRF origins without localhost
- Razorpay keys (card checkout cannot work without them)
"""

from __future__ import annotations

from django.core.exceptions import ImproperlyConfigured

from .base import *  # noqa: F403
from .base import BASE_DIR, MIDDLEWARE, PAYMENTS, env

DEBUG = False


def _require(value, message):
    if not value:
        raise ImproperlyConfigured(message)
    return value


def _require_public_https(origins, name):
    _require(origins, f"{name} must be set in production.")
    for origin in origins:
        if not origin.startswith("https://"):
            raise ImproperlyConfigured(f"{name} must be https:// in production ({origin}).")
        if "localhost" in origin or "127.0.0.1" in origin:
            raise ImproperlyConfigured(f"Remove localhost from {name} in production.")
    return origins


# ---------------- secrets / hosts ----------------
SECRET_KEY = (env("SECRET_KEY", default="") or "").strip()
if SECRET_KEY == "dev-insecure-change-me":
    SECRET_KEY = ""
_require(SECRET_KEY, "SECRET_KEY must be set to a strong value in production.")

ALLOWED_HOSTS = _require(
    env.list("ALLOWED_HOSTS", default=[]),
    "ALLOWED_HOSTS must be set in production.",
)

# ---------------- database (Postgres only) ----------------
_database_url = _require(
    (env("DATABASE_URL", default="") or "").strip(),
    "DATABASE_URL must be set in production (Postgres).",
)
if not _database_url.startswith(("postgres://", "postgresql://", "pgsql://")):
    raise ImproperlyConfigured("Production requires a Postgres DATABASE_URL.")

DATABASES = {"default": env.db("DATABASE_URL")}
DATABASES["default"]["CONN_MAX_AGE"] = env.int("DB_CONN_MAX_AGE", default=60)

# ---------------- static files (WhiteNoise) ----------------
STATIC_ROOT = env("STATIC_ROOT", default=str(BASE_DIR / "staticfiles"))
MIDDLEWARE.insert(1, "whitenoise.middleware.WhiteNoiseMiddleware")
STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {"BACKEND": "whitenoise.storage.CompressedManifestStaticFilesStorage"},
}

# ---------------- transport security ----------------
SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
SECURE_SSL_REDIRECT = env.bool("SECURE_SSL_REDIRECT", default=True)
SECURE_HSTS_SECONDS = env.int("SECURE_HSTS_SECONDS", default=3600)
SECURE_HSTS_INCLUDE_SUBDOMAINS = env.bool("SECURE_HSTS_INCLUDE_SUBDOMAINS", default=True)
SECURE_HSTS_PRELOAD = env.bool("SECURE_HSTS_PRELOAD", default=False)

SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True
SESSION_COOKIE_HTTPONLY = True
CSRF_COOKIE_HTTPONLY = True
SESSION_COOKIE_SAMESITE = "Lax"
CSRF_COOKIE_SAMESITE = "Lax"

SECURE_CONTENT_TYPE_NOSNIFF = True
SECURE_REFERRER_POLICY = "same-origin"
SECURE_CROSS_ORIGIN_OPENER_POLICY = "same-origin"
X_FRAME_OPTIONS = "DENY"

# ---------------- CORS / CSRF ----------------
CORS_ALLOWED_ORIGINS = _require_public_https(
    env.list("CORS_ALLOWED_ORIGINS", default=[]), "CORS_ALLOWED_ORIGINS"
)
CSRF_TRUSTED_ORIGINS = _require_public_https(
    env.list("CSRF_TRUSTED_ORIGINS", default=[]), "CSRF_TRUSTED_ORIGINS"
)
# JWT bearer tokens, no cookies cross-site
CORS_ALLOW_CREDENTIALS = False

# ---------------- payments ----------------
_razorpay = PAYMENTS.get("RAZORPAY", {})
_require(
    _razorpay.get("KEY_ID") and _razorpay.get("KEY_SECRET"),
    "RAZORPAY_KEY_ID and RAZORPAY_KEY_SECRET must be set in production.",
)
