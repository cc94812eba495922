"""
PATH: backend/settings/test.py

TEST SETTINGS
- In-memory SQLite
- Fast password hashing
- Throttling off (tests hammer the same endpoints)
- Deterministic store rules and gateway keys
"""

from __future__ import annotations

from decimal import Decimal

from .base import *  # noqa: F403
from .base import REST_FRAMEWORK

DEBUG = False
TESTING = True

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

REST_FRAMEWORK = {
    **REST_FRAMEWORK,
    "DEFAULT_THROTTLE_CLASSES": (),
}

ORDER_CANCELLATION_FEE = Decimal("100.00")
ORDER_EXCHANGE_FEE = Decimal("100.00")
ORDER_EXCHANGE_WINDOW_DAYS = 3
SHIPPING_FEE = Decimal("100.00")
FREE_SHIPPING_THRESHOLD = Decimal("999.00")
DEFAULT_SHIPPING_COUNTRY = "India"

PAYMENTS = {
    "RAZORPAY": {
        "KEY_ID": "rzp_test_key",
        "KEY_SECRET": "rzp_test_secret",
    }
}

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "handlers": {"null": {"class": "logging.NullHandler"}},
    "root": {"handlers": ["null"], "level": "WARNING"},
}
