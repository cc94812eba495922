# payments/services/payment_confirmation.py

"""
PAYMENT-CONFIRMED ORDER ENTRY POINT

Flow:
1) verify the gateway signature (HMAC-SHA256 of "order_id|payment_id")
2) replay guard: a payment id already attached to an order returns that order
   (a concurrent duplicate loses on the unique payment id and is answered
   with the winning order)
3) create_order(...) with payment_method=card, payment_status=paid and the
   gateway amount as expected_total (coupon is re-validated here too)

The gateway's own protocol is out of scope: only its verified result is used.
"""

from __future__ import annotations

import logging

from django.db import IntegrityError

from orders.models import Order
from orders.services.exceptions import OrderServiceError, UnauthorizedError
from orders.services.order_assembly import create_order
from payments.services.razorpay import verify_payment_signature

logger = logging.getLogger(__name__)


class PaymentVerificationError(OrderServiceError):
    code = "PAYMENT_VERIFICATION_FAILED"
    http_status = 400
    default_message = "Payment signature verification failed"


def _order_for_payment(user, gateway_payment_id: str):
    existing = Order.objects.filter(gateway_payment_id=gateway_payment_id).first()
    if existing is not None and existing.user_id != user.pk:
        raise UnauthorizedError("Payment belongs to another account")
    return existing


def _log_unfulfilled_payment(user, gateway_order_id: str, gateway_payment_id: str) -> None:
    # money was captured but no order exists: needs a manual refund
    logger.error(
        "Paid order could not be created",
        extra={
            "gateway_order_id": gateway_order_id,
            "gateway_payment_id": gateway_payment_id,
            "user_id": str(user.pk),
        },
    )


def confirm_paid_order(
    *,
    user,
    gateway_order_id: str,
    gateway_payment_id: str,
    signature: str,
    items,
    shipping_address,
    amount,
    coupon_code=None,
) -> tuple[Order, bool]:
    """
    Returns (order, created).
    """
    gateway_order_id = (gateway_order_id or "").strip()
    gateway_payment_id = (gateway_payment_id or "").strip()
    signature = (signature or "").strip()

    if not (gateway_order_id and gateway_payment_id and signature):
        raise PaymentVerificationError("Payment details are incomplete")

    if not verify_payment_signature(
        gateway_order_id=gateway_order_id,
        gateway_payment_id=gateway_payment_id,
        signature=signature,
    ):
        logger.warning(
            "Payment signature mismatch",
            extra={"gateway_order_id": gateway_order_id, "user_id": str(user.pk)},
        )
        raise PaymentVerificationError()

    existing = _order_for_payment(user, gateway_payment_id)
    if existing is not None:
        return existing, False

    try:
        order = create_order(
            user=user,
            items=items,
            shipping_address=shipping_address,
            coupon_code=coupon_code,
            payment_method=Order.PAYMENT_CARD,
            payment_status=Order.PAYMENT_STATUS_PAID,
            gateway={
                "order_id": gateway_order_id,
                "payment_id": gateway_payment_id,
                "signature": signature,
            },
            expected_total=amount,
        )
    except IntegrityError:
        existing = _order_for_payment(user, gateway_payment_id)
        if existing is None:
            _log_unfulfilled_payment(user, gateway_order_id, gateway_payment_id)
            raise
        logger.info(
            "Concurrent payment confirmation resolved to existing order",
            extra={"order_id": str(existing.pk), "gateway_payment_id": gateway_payment_id},
        )
        return existing, False
    except Exception:
        _log_unfulfilled_payment(user, gateway_order_id, gateway_payment_id)
        raise

    return order, True
