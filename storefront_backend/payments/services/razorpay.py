# payments/services/razorpay.py
from __future__ import annotations

import base64
import hashlib
import hmac
import json
import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from django.conf import settings

logger = logging.getLogger(__name__)

RAZORPAY_BASE = "https://api.razorpay.com/v1"


# ============================================================
# ERRORS
# ============================================================

class PaymentGatewayError(Exception):
    code = "GATEWAY_ERROR"
    http_status = 502


class PaymentConfigurationError(PaymentGatewayError):
    code = "GATEWAY_NOT_CONFIGURED"
    http_status = 500


# ============================================================
# CONFIG
# ============================================================

def _razorpay_cfg() -> dict:
    payments = getattr(settings, "PAYMENTS", {}) or {}
    cfg = payments.get("RAZORPAY") if isinstance(payments, dict) else None
    return cfg if isinstance(cfg, dict) else {}


def get_key_id() -> str:
    key_id = (_razorpay_cfg().get("KEY_ID") or "").strip()
    if not key_id:
        raise PaymentConfigurationError("Razorpay keys are not configured")
    return key_id


def get_key_secret() -> str:
    secret = (_razorpay_cfg().get("KEY_SECRET") or "").strip()
    if not secret:
        raise PaymentConfigurationError("Razorpay key secret is not configured")
    return secret


# ============================================================
# HELPERS
# ============================================================

def to_paise(amount) -> int:
    """
    Gateway amounts are integers in the smallest currency unit.
    """
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise ValueError("amount must be a valid decimal") from exc

    if value <= 0:
        raise ValueError("Valid amount is required")

    return int((value * Decimal("100")).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _safe_preview(text: str, limit: int = 800) -> str:
    text = (text or "").strip()
    if len(text) <= limit:
        return text
    return text[:limit] + " ...(truncated)"


def _request_json(method: str, url: str, *, body: dict | None = None, timeout: int = 25) -> dict[str, Any]:
    credentials = f"{get_key_id()}:{get_key_secret()}".encode("utf-8")
    data = None
    if body is not None:
        data = json.dumps(body, ensure_ascii=False).encode("utf-8")

    req = Request(
        url,
        data=data,
        headers={
            "Authorization": f"Basic {base64.b64encode(credentials).decode('ascii')}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        },
        method=method,
    )

    try:
        with urlopen(req, timeout=timeout) as resp:
            raw = resp.read().decode("utf-8", errors="replace")
    except HTTPError as e:
        raw = e.read().decode("utf-8", errors="replace") if e.fp else ""
        logger.warning(
            "Razorpay rejected request",
            extra={"status_code": e.code, "body": _safe_preview(raw)},
        )
        raise PaymentGatewayError(f"Razorpay HTTPError: {e.code} {_safe_preview(raw)}") from e
    except URLError as e:
        raise PaymentGatewayError(f"Razorpay URLError: {e}") from e

    try:
        parsed = json.loads(raw)
    except ValueError as e:
        raise PaymentGatewayError(f"Razorpay returned non-JSON: {_safe_preview(raw)}") from e

    if not isinstance(parsed, dict):
        raise PaymentGatewayError("Razorpay returned an unexpected payload")
    return parsed


# ============================================================
# PUBLIC API
# ============================================================

def create_gateway_order(*, amount, currency: str | None = None, receipt: str = "") -> dict:
    """
    amount is in the base currency unit (e.g. rupees); sent to the gateway in paise.
    """
    payload = {
        "amount": to_paise(amount),
        "currency": (currency or settings.DEFAULT_CURRENCY).strip().upper(),
        "receipt": str(receipt or "").strip(),
    }

    data = _request_json("POST", f"{RAZORPAY_BASE}/orders", body=payload)

    if not data.get("id"):
        error = data.get("error") if isinstance(data.get("error"), dict) else {}
        raise PaymentGatewayError(error.get("description") or "Razorpay order rejected")

    return {
        "id": data.get("id"),
        "amount": data.get("amount"),
        "currency": data.get("currency"),
        "receipt": data.get("receipt"),
        "key_id": get_key_id(),
    }


def compute_payment_signature(*, gateway_order_id: str, gateway_payment_id: str) -> str:
    secret = get_key_secret().encode("utf-8")
    message = f"{gateway_order_id}|{gateway_payment_id}".encode("utf-8")
    return hmac.new(secret, message, hashlib.sha256).hexdigest()


def verify_payment_signature(*, gateway_order_id: str, gateway_payment_id: str, signature: str | None) -> bool:
    if not (gateway_order_id and gateway_payment_id and signature):
        return False
    expected = compute_payment_signature(
        gateway_order_id=gateway_order_id,
        gateway_payment_id=gateway_payment_id,
    )
    return hmac.compare_digest(expected, str(signature).strip())
