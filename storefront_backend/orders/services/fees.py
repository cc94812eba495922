# orders/services/fees.py

"""
FEE CALCULATOR (PURE)

- cancel:   ORDER_CANCELLATION_FEE when cancelling from processing, else 0
- exchange: 0 for damaged/defective items, else ORDER_EXCHANGE_FEE

Amounts are in the store's base currency; no other input affects the fee.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings

from orders.models import Order

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")

OP_CANCEL = "cancel"
OP_EXCHANGE = "exchange"

FREE_EXCHANGE_REASONS = {"damaged", "defective"}


def _money(v) -> Decimal:
    return Decimal(str(v or "0.00")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def is_free_exchange_reason(reason) -> bool:
    return (reason or "").strip().lower() in FREE_EXCHANGE_REASONS


def calculate_fee(operation: str, origin_status: str, reason: str | None = None) -> Decimal:
    if operation == OP_CANCEL:
        if origin_status == Order.STATUS_PROCESSING:
            return _money(settings.ORDER_CANCELLATION_FEE)
        return ZERO

    if operation == OP_EXCHANGE:
        if is_free_exchange_reason(reason):
            return ZERO
        return _money(settings.ORDER_EXCHANGE_FEE)

    raise ValueError(f"Unknown fee operation: {operation}")
