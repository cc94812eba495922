# coupons/services/coupon_evaluator.py

"""
COUPON EVALUATOR (PURE, NO SIDE EFFECTS)

validate_coupon(code, user, cart_value, order_total) -> CouponQuote

Checks run in a fixed order and stop at the first failure:
1. exists + active
2. not expired
3. global usage limit not reached
4. min_order_value <= cart_value   (merchandise only, shipping excluded)
5. whitelist (allowed_users) contains the user, if set
6. first-order-only -> user has no prior orders
7. per-user limit not reached (non-cancelled orders carrying this exact code;
   cancelling an order gives its use back, as it does for the global count)

Money:
- discount = cart_value * pct / 100  (percentage)  |  value (fixed)
- discount = min(discount, cart_value): the shipping portion is never discounted
- shipping_cost = order_total - cart_value
- final_total = (cart_value - discount) + shipping_cost
- Decimal, 2dp, ROUND_HALF_UP
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from django.apps import apps
from django.utils import timezone

from coupons.models import Coupon
from coupons.models.coupon import normalize_code

TWOPLACES = Decimal("0.01")
HUNDRED = Decimal("100")


def _money(v) -> Decimal:
    return Decimal(str(v or "0.00")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


# ============================================================
# DOMAIN ERRORS
# ============================================================

class CouponError(Exception):
    code = "COUPON_ERROR"
    http_status = 400
    default_message = "Coupon cannot be applied"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)


class InvalidCouponError(CouponError):
    code = "INVALID_COUPON"
    default_message = "Invalid coupon code"


class CouponExpiredError(CouponError):
    code = "COUPON_EXPIRED"
    default_message = "This coupon has expired"


class UsageLimitReachedError(CouponError):
    code = "USAGE_LIMIT_REACHED"
    default_message = "This coupon has reached its usage limit"


class BelowMinimumOrderError(CouponError):
    code = "BELOW_MINIMUM_ORDER"
    default_message = "Order value is below the minimum required for this coupon"


class NotEligibleError(CouponError):
    code = "NOT_ELIGIBLE"
    default_message = "You are not eligible to use this coupon"


class NotFirstOrderError(CouponError):
    code = "NOT_FIRST_ORDER"
    default_message = "This coupon is only valid on your first order"


class PerUserLimitReachedError(CouponError):
    code = "PER_USER_LIMIT_REACHED"
    default_message = "You have already used this coupon the maximum number of times"


# ============================================================
# RESULT
# ============================================================

@dataclass(frozen=True)
class CouponQuote:
    coupon: Coupon
    discount_amount: Decimal
    shipping_cost: Decimal
    final_total: Decimal


# ============================================================
# HELPERS
# ============================================================

# orders.models.Order.STATUS_CANCELLED
CANCELLED_STATUS = "cancelled"


def _orders():
    # orders depends on coupons; resolve lazily to keep the import graph acyclic
    return apps.get_model("orders", "Order").objects


def compute_discount(coupon: Coupon, cart_value: Decimal) -> Decimal:
    cart_value = _money(cart_value)
    if coupon.discount_type == Coupon.DiscountType.PERCENTAGE:
        discount = cart_value * Decimal(coupon.discount_value) / HUNDRED
    else:
        discount = Decimal(coupon.discount_value)
    return _money(min(_money(discount), cart_value))


def check_eligibility(coupon: Coupon, *, user, cart_value: Decimal) -> None:
    """
    Checks 2-7 against an already-resolved coupon.
    Raises the first failing CouponError.
    """
    now = timezone.now()

    if coupon.expiry_date and coupon.expiry_date < now:
        raise CouponExpiredError()

    if coupon.has_usage_limit and coupon.usage_count >= coupon.usage_limit:
        raise UsageLimitReachedError()

    min_order = _money(coupon.min_order_value)
    if min_order > 0 and _money(cart_value) < min_order:
        raise BelowMinimumOrderError(
            f"Minimum order value of {min_order} is required to use this coupon"
        )

    user_id = getattr(user, "pk", None)

    if coupon.allowed_users.exists() and not coupon.allowed_users.filter(pk=user_id).exists():
        raise NotEligibleError()

    if coupon.is_first_order_only and _orders().filter(user_id=user_id).exists():
        raise NotFirstOrderError()

    if coupon.has_per_user_limit:
        used = (
            _orders()
            .filter(user_id=user_id, coupon_code=coupon.code)
            .exclude(status=CANCELLED_STATUS)
            .count()
        )
        if used >= coupon.per_user_limit:
            raise PerUserLimitReachedError()


def quote(coupon: Coupon, *, cart_value, order_total) -> CouponQuote:
    cart_value = _money(cart_value)
    order_total = _money(order_total)

    discount = compute_discount(coupon, cart_value)
    shipping_cost = _money(order_total - cart_value)
    final_total = _money((cart_value - discount) + shipping_cost)

    return CouponQuote(
        coupon=coupon,
        discount_amount=discount,
        shipping_cost=shipping_cost,
        final_total=final_total,
    )


# ============================================================
# PUBLIC API
# ============================================================

def get_active_coupon(code, *, lock: bool = False) -> Coupon:
    """
    Check 1. lock=True takes a row lock (must run inside transaction.atomic).
    """
    normalized = normalize_code(code)
    if not normalized:
        raise InvalidCouponError("Coupon code is required")

    qs = Coupon.objects.all()
    if lock:
        qs = qs.select_for_update()

    coupon = qs.filter(code=normalized).first()
    if coupon is None or not coupon.is_active:
        raise InvalidCouponError()
    return coupon


def validate_coupon(code, *, user, cart_value, order_total, lock: bool = False) -> CouponQuote:
    coupon = get_active_coupon(code, lock=lock)
    check_eligibility(coupon, user=user, cart_value=cart_value)
    return quote(coupon, cart_value=cart_value, order_total=order_total)
