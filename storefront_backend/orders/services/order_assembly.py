# orders/services/order_assembly.py

"""
======================================================
PATH: orders/services/order_assembly.py
======================================================
ORDER ASSEMBLY (SINGLE ENTRY POINT FOR NEW ORDERS)

Used by:
- direct checkout (cash on delivery)            -> POST /api/orders/
- payment-confirmed checkout (gateway verified) -> payments.services

Strict order of steps, all inside ONE transaction.atomic block:
1) validate input (items, quantities, shipping address)
2) pre-check every product (locked) -> ProductNotFound / InsufficientStock
3) price from the live catalog, shipping rule, coupon (evaluator)
   - direct path discounts the FULL total (shipping included)
   - expected_total (gateway amount) must match the final total
4) reserve stock (atomic conditional decrements)
5) persist Order + OrderItems (price/name snapshots)
6) consume coupon usage
7) clear the user's cart

Steps 1-3 never mutate. Any failure in 4-7 rolls back the whole transaction.
======================================================
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings
from django.db import transaction

from cart.services.cart_service import clear_cart
from coupons.services.coupon_evaluator import validate_coupon
from coupons.services.coupon_usage import consume_coupon
from orders.models import Order, OrderItem
from orders.services.exceptions import OrderValidationError
from products.services.stock_ledger import (
    aggregate_lines,
    check_availability,
    require_positive_qty,
    reserve,
)

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")

ADDRESS_FIELDS = ("street", "city", "state", "postal_code", "country", "phone", "landmark")
REQUIRED_ADDRESS_FIELDS = ("street", "city", "state", "postal_code", "phone")

VALID_PAYMENT_METHODS = {value for value, _ in Order.PAYMENT_METHOD_CHOICES}
VALID_PAYMENT_STATUSES = {value for value, _ in Order.PAYMENT_STATUS_CHOICES}


def _money(v) -> Decimal:
    return Decimal(str(v or "0.00")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


# ============================================================
# INPUT NORMALIZATION
# ============================================================

def normalize_items(items) -> list[tuple]:
    """
    items: iterable of {"product_id": ..., "quantity": ...}
    ("product" is accepted as an alias of "product_id")
    """
    if not items:
        raise OrderValidationError("No order items")

    lines = []
    for idx, item in enumerate(items, start=1):
        if not isinstance(item, dict):
            raise OrderValidationError(f"Item {idx}: invalid item")

        product_id = item.get("product_id") or item.get("product")
        if not product_id:
            raise OrderValidationError(f"Item {idx}: product is required")

        try:
            qty = require_positive_qty(item.get("quantity"))
        except ValueError:
            raise OrderValidationError(f"Item {idx}: quantity must be a whole number >= 1")

        lines.append((product_id, qty))

    return lines


def normalize_shipping_address(address) -> dict:
    if not isinstance(address, dict):
        raise OrderValidationError("Complete shipping address is required")

    cleaned = {key: str(address.get(key) or "").strip() for key in ADDRESS_FIELDS}

    missing = [key for key in REQUIRED_ADDRESS_FIELDS if not cleaned[key]]
    if missing:
        raise OrderValidationError(
            f"Complete shipping address is required (missing: {', '.join(missing)})"
        )

    if not cleaned["country"]:
        cleaned["country"] = settings.DEFAULT_SHIPPING_COUNTRY

    return cleaned


def address_to_fields(address: dict) -> dict:
    return {f"shipping_{key}": address[key] for key in ADDRESS_FIELDS}


# ============================================================
# MONEY RULES
# ============================================================

def shipping_for(cart_value: Decimal) -> Decimal:
    """
    Flat shipping fee; free above FREE_SHIPPING_THRESHOLD; nothing to ship
    for an empty (zero value) cart.
    """
    cart_value = _money(cart_value)
    if cart_value > _money(settings.FREE_SHIPPING_THRESHOLD):
        return ZERO
    if cart_value > ZERO:
        return _money(settings.SHIPPING_FEE)
    return ZERO


def price_lines(requested, products) -> tuple[list[dict], Decimal]:
    """
    Snapshot each product's CURRENT price + name.
    Returns (line snapshots, merchandise subtotal).
    """
    snapshots = []
    subtotal = ZERO
    for product_id, qty in requested.items():
        product = products[product_id]
        price = _money(product.price)
        snapshots.append(
            {
                "product": product,
                "name": product.name,
                "price": price,
                "quantity": qty,
            }
        )
        subtotal += price * qty
    return snapshots, _money(subtotal)


# ============================================================
# PUBLIC API
# ============================================================

@transaction.atomic
def create_order(
    *,
    user,
    items,
    shipping_address,
    coupon_code=None,
    payment_method=Order.PAYMENT_COD,
    payment_status=Order.PAYMENT_STATUS_PENDING,
    gateway=None,
    expected_total=None,
) -> Order:
    # ---- 1) validate input ----
    lines = normalize_items(items)
    address = normalize_shipping_address(shipping_address)

    if payment_method not in VALID_PAYMENT_METHODS:
        raise OrderValidationError(f"Unsupported payment method: {payment_method}")
    if payment_status not in VALID_PAYMENT_STATUSES:
        raise OrderValidationError(f"Unsupported payment status: {payment_status}")

    # ---- 2) pre-check (no mutation) ----
    requested = aggregate_lines(lines)
    products = check_availability(lines)

    # ---- 3) totals + coupon ----
    snapshots, cart_value = price_lines(requested, products)
    shipping = shipping_for(cart_value)
    total = _money(cart_value + shipping)

    coupon = None
    discount = ZERO
    code = (coupon_code or "").strip()
    if code:
        # Direct path: discount base is the full total (shipping included)
        result = validate_coupon(code, user=user, cart_value=total, order_total=total, lock=True)
        coupon = result.coupon
        discount = result.discount_amount

    final_total = _money(total - discount)

    if expected_total is not None and _money(expected_total) != final_total:
        raise OrderValidationError(
            f"Payment amount {_money(expected_total)} does not match order total {final_total}"
        )

    # ---- 4) reserve stock ----
    for product_id, qty in requested.items():
        reserve(product_id=product_id, quantity=qty)

    # ---- 5) persist ----
    gateway = gateway or {}
    order = Order.objects.create(
        user=user,
        total_price=final_total,
        shipping_fee=shipping,
        coupon_code=coupon.code if coupon else "",
        coupon_discount=discount,
        status=Order.STATUS_PENDING,
        payment_method=payment_method,
        payment_status=payment_status,
        gateway_order_id=gateway.get("order_id", "") or "",
        gateway_payment_id=gateway.get("payment_id", "") or "",
        gateway_signature=gateway.get("signature", "") or "",
        **address_to_fields(address),
    )

    for line in snapshots:
        OrderItem.objects.create(order=order, **line)

    # ---- 6) coupon usage ----
    if coupon is not None:
        consume_coupon(coupon)

    # ---- 7) cart ----
    clear_cart(user=user)

    logger.info(
        "Order created",
        extra={
            "order_id": str(order.id),
            "order_no": order.order_no,
            "user_id": str(user.pk),
            "total_price": str(final_total),
            "coupon_code": order.coupon_code,
            "payment_method": payment_method,
        },
    )
    return order
