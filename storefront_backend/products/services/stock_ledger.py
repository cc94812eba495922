# products/services/stock_ledger.py

"""
STOCK LEDGER (SOLE MUTATOR OF Product.stock / Product.sales)

Purpose:
- reserve:   stock -= qty, sales += qty   (only if stock >= qty)
- release:   stock += qty, sales -= qty   (compensation for cancel / exchange)
- reconcile: net delta for admin item replacement, counting what the order
             already holds
- check_availability: validate-all pre-check used before any commit phase

HARD RULES:
- Quantities are whole integer units >= 1.
- Every mutation is ONE conditional UPDATE built from F() expressions.
  Never read stock into Python, compare, then write it back: two concurrent
  checkouts for the last unit would both pass and drive stock negative.
- The DB check constraint (stock >= 0) is the last line of defence.
"""

from __future__ import annotations

import logging
import uuid
from collections import OrderedDict

from django.db.models import F
from django.utils import timezone

from products.models import Product

logger = logging.getLogger(__name__)


# ============================================================
# DOMAIN ERRORS
# ============================================================

class StockLedgerError(Exception):
    code = "STOCK_ERROR"
    http_status = 400


class ProductNotFoundError(StockLedgerError):
    code = "PRODUCT_NOT_FOUND"
    http_status = 404

    def __init__(self, product_id):
        self.product_id = product_id
        super().__init__(f"Product not found: {product_id}")


class InsufficientStockError(StockLedgerError):
    code = "INSUFFICIENT_STOCK"
    http_status = 400

    def __init__(self, *, product_id, product_name: str, available: int, requested: int):
        self.product_id = product_id
        self.product_name = product_name
        self.available = int(available)
        self.requested = int(requested)
        super().__init__(
            f"Insufficient stock for {product_name}. "
            f"Only {self.available} items available (requested {self.requested})"
        )


# ============================================================
# HELPERS
# ============================================================

def _to_int_qty(value) -> int:
    """
    Quantity normalizer.
    HARD RULE: quantities are integer units in this system.
    """
    if value is None or value == "":
        return 0

    if isinstance(value, bool):
        raise ValueError("quantity must be a whole integer unit")

    if isinstance(value, int):
        return value

    if isinstance(value, str):
        s = value.strip()
        if s.isdigit():
            return int(s)

    raise ValueError("quantity must be a whole integer unit")


def require_positive_qty(value) -> int:
    qty = _to_int_qty(value)
    if qty <= 0:
        raise ValueError("quantity must be at least 1")
    return qty


def normalize_product_id(value) -> uuid.UUID:
    """
    Product ids are UUIDs. Anything unparseable is reported as a missing
    product rather than leaking a DB-level validation error.
    """
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value).strip())
    except (TypeError, ValueError, AttributeError):
        raise ProductNotFoundError(value)


def _insufficient(product_id, *, requested: int, held: int = 0) -> StockLedgerError:
    product = Product.objects.filter(pk=product_id).only("name", "stock").first()
    if product is None:
        return ProductNotFoundError(product_id)
    return InsufficientStockError(
        product_id=product_id,
        product_name=product.name,
        available=int(product.stock) + int(held),
        requested=requested,
    )


# ============================================================
# MUTATIONS
# ============================================================

def reserve(*, product_id, quantity) -> None:
    """
    Atomic conditional decrement: UPDATE ... WHERE stock >= qty.
    Zero rows updated means either the product vanished or stock ran out.
    """
    pid = normalize_product_id(product_id)
    qty = require_positive_qty(quantity)

    updated = Product.objects.filter(pk=pid, stock__gte=qty).update(
        stock=F("stock") - qty,
        sales=F("sales") + qty,
        updated_at=timezone.now(),
    )
    if updated:
        logger.debug("Stock reserved", extra={"product_id": str(pid), "quantity": qty})
        return

    raise _insufficient(pid, requested=qty)


def release(*, product_id, quantity) -> bool:
    """
    Compensating increment. No upper bound.

    Order lines hold a weak product reference: if the product was deleted
    since the order was placed, there is nothing to put back.
    """
    if product_id is None:
        logger.warning("Stock release skipped: order line has no product")
        return False

    pid = normalize_product_id(product_id)
    qty = require_positive_qty(quantity)

    updated = Product.objects.filter(pk=pid).update(
        stock=F("stock") + qty,
        sales=F("sales") - qty,
        updated_at=timezone.now(),
    )
    if not updated:
        logger.warning(
            "Stock release skipped: product no longer exists",
            extra={"product_id": str(pid), "quantity": qty},
        )
        return False

    logger.debug("Stock released", extra={"product_id": str(pid), "quantity": qty})
    return True


def reconcile(*, product_id, old_quantity, new_quantity) -> int:
    """
    Apply the net change of one product's quantity on an order.

    Availability counts what the order already holds:
        stock + old_quantity >= new_quantity
    which, as a conditional UPDATE, is exactly stock >= (new - old).

    Returns the applied delta (positive = released, negative = reserved).
    """
    old_qty = _to_int_qty(old_quantity)
    new_qty = _to_int_qty(new_quantity)
    if old_qty < 0 or new_qty < 0:
        raise ValueError("quantities cannot be negative")

    delta = old_qty - new_qty
    if delta > 0:
        release(product_id=product_id, quantity=delta)
    elif delta < 0:
        pid = normalize_product_id(product_id)
        try:
            reserve(product_id=pid, quantity=-delta)
        except InsufficientStockError:
            raise _insufficient(pid, requested=new_qty, held=old_qty)

    return delta


# ============================================================
# PRE-CHECK (NO MUTATION)
# ============================================================

def aggregate_lines(lines) -> "OrderedDict[uuid.UUID, int]":
    """
    lines: iterable of (product_id, quantity)
    Duplicate products are summed; first-seen order is kept so errors name
    the first failing line.
    """
    out: OrderedDict[uuid.UUID, int] = OrderedDict()
    for product_id, quantity in lines:
        pid = normalize_product_id(product_id)
        out[pid] = out.get(pid, 0) + require_positive_qty(quantity)
    return out


def check_availability(lines, *, held=None, lock: bool = True) -> dict:
    """
    Validate-all pass. Looks up every product and fails on the first line
    that is missing or short.

    held: optional {product_id: qty} already reserved by the order being
          edited (admin item replacement); counted as available.
    lock: take row locks (SELECT ... FOR UPDATE) in pk order. Must be called
          inside transaction.atomic when True.

    Returns {product_id: Product}.
    """
    requested = aggregate_lines(lines)
    held_map = {normalize_product_id(k): int(v or 0) for k, v in (held or {}).items()}

    qs = Product.objects.filter(pk__in=list(requested.keys())).order_by("pk")
    if lock:
        qs = qs.select_for_update()
    products = {p.pk: p for p in qs}

    for pid, qty in requested.items():
        product = products.get(pid)
        if product is None:
            raise ProductNotFoundError(pid)

        available = int(product.stock) + held_map.get(pid, 0)
        if available < qty:
            raise InsufficientStockError(
                product_id=pid,
                product_name=product.name,
                available=available,
                requested=qty,
            )

    return products
