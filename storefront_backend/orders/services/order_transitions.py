# orders/services/order_transitions.py

"""
======================================================
PATH: orders/services/order_transitions.py
======================================================
ORDER TRANSITION SERVICES

Every mutation:
- runs inside transaction.atomic
- locks the order row (select_for_update)
- validates the move through order_lifecycle.resolve_transition
- applies the status change with an optimistic guard:
      UPDATE orders_order SET ... WHERE id = <id> AND status = <expected>
  zero rows -> StateConflictError
- runs side effects (stock release, coupon restore) ONLY after the guarded
  update succeeded, so two concurrent cancels cannot both release stock

admin_update_order is the privileged escape hatch: no FSM check for status
(known states only), partial address merge, item replacement with full stock
reconciliation and prices recomputed from the live catalog.
======================================================
"""

from __future__ import annotations

import logging
import uuid
from collections import defaultdict
from datetime import timedelta
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from coupons.services.coupon_usage import restore_coupon
from orders.models import Order, OrderItem
from orders.services.exceptions import (
    OrderNotFoundError,
    OrderValidationError,
    StateConflictError,
    UnauthorizedError,
)
from orders.services.fees import OP_CANCEL, OP_EXCHANGE, calculate_fee
from orders.services.order_assembly import (
    ADDRESS_FIELDS,
    normalize_items,
    price_lines,
)
from orders.services.order_lifecycle import (
    ALL_STATES,
    EVENT_APPROVE_EXCHANGE,
    EVENT_CANCEL,
    EVENT_REJECT_EXCHANGE,
    EVENT_REQUEST_EXCHANGE,
    actors_for,
    event_for_target,
    resolve_transition,
)
from permissions.roles import is_admin, is_owner_or_admin
from products.services.stock_ledger import (
    aggregate_lines,
    check_availability,
    reconcile,
    release,
)

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")

EXCHANGE_REASON_MAX_LENGTH = 500

# items of orders in these states are already back in stock
STOCK_RELEASED_STATES = {
    Order.STATUS_CANCELLED,
    Order.STATUS_EXCHANGE_APPROVED,
    Order.STATUS_EXCHANGED,
}


def _money(v) -> Decimal:
    return Decimal(str(v or "0.00")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


# ============================================================
# HELPERS
# ============================================================

def _get_order(order_id, *, lock: bool = False) -> Order:
    try:
        oid = order_id if isinstance(order_id, uuid.UUID) else uuid.UUID(str(order_id))
    except (TypeError, ValueError):
        raise OrderNotFoundError()

    qs = Order.objects.all()
    if lock:
        qs = qs.select_for_update()

    order = qs.filter(pk=oid).first()
    if order is None:
        raise OrderNotFoundError()
    return order


def _guarded_update(order: Order, *, expected_status: str, **fields) -> None:
    fields["updated_at"] = timezone.now()

    updated = Order.objects.filter(pk=order.pk, status=expected_status).update(**fields)
    if not updated:
        raise StateConflictError("Order status changed concurrently; reload and try again")

    for name, value in fields.items():
        setattr(order, name, value)


def _release_items(order: Order) -> None:
    for item in order.items.all():
        release(product_id=item.product_id, quantity=item.quantity)


# ============================================================
# READS
# ============================================================

def list_orders_for_user(*, user):
    return (
        Order.objects.filter(user=user)
        .prefetch_related("items")
        .order_by("-created_at")
    )


def list_all_orders(*, status: str | None = None):
    qs = Order.objects.select_related("user").prefetch_related("items").order_by("-created_at")
    if status:
        if status not in ALL_STATES:
            raise OrderValidationError(f"Unknown order status: {status}")
        qs = qs.filter(status=status)
    return qs


def get_order_for_actor(*, actor, order_id) -> Order:
    order = _get_order(order_id)
    if not is_owner_or_admin(actor, order):
        raise UnauthorizedError("Not authorized to view this order")
    return order


# ============================================================
# TRANSITIONS
# ============================================================

@transaction.atomic
def set_order_status(*, actor, order_id, status: str) -> Order:
    """
    Admin fulfilment move (forward-only, skips allowed) or exchange completion.
    """
    order = _get_order(order_id, lock=True)
    origin = order.status

    event = event_for_target(from_status=origin, target=status)
    target = resolve_transition(
        from_status=origin,
        event=event,
        actors=actors_for(user=actor, order=order),
        target=status,
    )

    fields = {"status": target}
    if target == Order.STATUS_DELIVERED:
        fields["delivered_at"] = timezone.now()

    _guarded_update(order, expected_status=origin, **fields)

    logger.info(
        "Order status changed",
        extra={"order_id": str(order.id), "from_status": origin, "to_status": target},
    )
    return order


@transaction.atomic
def cancel_order(*, actor, order_id) -> Order:
    order = _get_order(order_id, lock=True)
    origin = order.status

    target = resolve_transition(
        from_status=origin,
        event=EVENT_CANCEL,
        actors=actors_for(user=actor, order=order),
    )

    fee = calculate_fee(OP_CANCEL, origin)
    refund = max(_money(order.total_price) - fee, ZERO)

    _guarded_update(
        order,
        expected_status=origin,
        status=target,
        cancellation_fee=fee,
        refund_amount=refund,
    )

    _release_items(order)

    if order.coupon_code:
        restore_coupon(order.coupon_code)

    logger.info(
        "Order cancelled",
        extra={
            "order_id": str(order.id),
            "from_status": origin,
            "cancellation_fee": str(fee),
            "refund_amount": str(refund),
        },
    )
    return order


@transaction.atomic
def request_exchange(*, actor, order_id, reason: str = "") -> Order:
    reason = (reason or "").strip()
    if len(reason) > EXCHANGE_REASON_MAX_LENGTH:
        raise OrderValidationError(
            f"Exchange reason cannot exceed {EXCHANGE_REASON_MAX_LENGTH} characters"
        )

    order = _get_order(order_id, lock=True)
    origin = order.status

    target = resolve_transition(
        from_status=origin,
        event=EVENT_REQUEST_EXCHANGE,
        actors=actors_for(user=actor, order=order),
    )

    window_days = int(settings.ORDER_EXCHANGE_WINDOW_DAYS)
    delivered_at = order.delivered_at or order.updated_at
    if timezone.now() - delivered_at > timedelta(days=window_days):
        raise StateConflictError(
            f"Exchange window expired. You can only exchange within {window_days} days of delivery."
        )

    fee = calculate_fee(OP_EXCHANGE, origin, reason)

    _guarded_update(
        order,
        expected_status=origin,
        status=target,
        exchange_reason=reason,
        exchange_fee=fee,
    )

    logger.info(
        "Exchange requested",
        extra={"order_id": str(order.id), "exchange_fee": str(fee)},
    )
    return order


@transaction.atomic
def review_exchange(*, actor, order_id, approved: bool) -> Order:
    order = _get_order(order_id, lock=True)
    origin = order.status
    event = EVENT_APPROVE_EXCHANGE if approved else EVENT_REJECT_EXCHANGE

    target = resolve_transition(
        from_status=origin,
        event=event,
        actors=actors_for(user=actor, order=order),
    )

    if approved:
        _guarded_update(order, expected_status=origin, status=target)
        # old items come back to stock; replacement fulfilment is a follow-up
        _release_items(order)
    else:
        _guarded_update(
            order,
            expected_status=origin,
            status=target,
            exchange_reason="",
            exchange_fee=ZERO,
        )

    logger.info(
        "Exchange reviewed",
        extra={"order_id": str(order.id), "approved": bool(approved)},
    )
    return order


# ============================================================
# ADMIN ESCAPE HATCH
# ============================================================

@transaction.atomic
def admin_update_order(*, actor, order_id, shipping_address=None, status=None, items=None) -> Order:
    if not is_admin(actor):
        raise UnauthorizedError("Not authorized as an admin")

    order = _get_order(order_id, lock=True)
    origin = order.status
    fields = {}

    # ---- shipping address: partial merge ----
    if shipping_address is not None:
        if not isinstance(shipping_address, dict):
            raise OrderValidationError("shipping_address must be an object")
        for key in ADDRESS_FIELDS:
            value = str(shipping_address.get(key) or "").strip()
            if value:
                fields[f"shipping_{key}"] = value

    # ---- status: known states only, no FSM check ----
    if status is not None and status != origin:
        if status not in ALL_STATES:
            raise OrderValidationError(f"Unknown order status: {status}")
        fields["status"] = status
        if status == Order.STATUS_DELIVERED:
            fields["delivered_at"] = timezone.now()

    # ---- items: reconcile stock, re-snapshot from live catalog ----
    if items is not None:
        if origin in STOCK_RELEASED_STATES:
            raise StateConflictError(
                f"Cannot replace items of an order in status '{origin}': its stock was already released"
            )

        lines = normalize_items(items)
        requested = aggregate_lines(lines)

        held = defaultdict(int)
        for item in order.items.all():
            if item.product_id is not None:
                held[item.product_id] += int(item.quantity)

        products = check_availability(lines, held=held)

        for product_id in sorted(set(held) | set(requested), key=str):
            reconcile(
                product_id=product_id,
                old_quantity=held.get(product_id, 0),
                new_quantity=requested.get(product_id, 0),
            )

        snapshots, subtotal = price_lines(requested, products)

        order.items.all().delete()
        for line in snapshots:
            OrderItem.objects.create(order=order, **line)

        fields["total_price"] = subtotal
        fields["shipping_fee"] = ZERO

    if fields:
        _guarded_update(order, expected_status=origin, **fields)

    logger.info(
        "Order updated by admin",
        extra={
            "order_id": str(order.id),
            "fields": sorted(fields.keys()),
            "actor_id": str(getattr(actor, "pk", "")),
        },
    )
    return order
