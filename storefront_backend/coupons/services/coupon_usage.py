# coupons/services/coupon_usage.py

"""
COUPON USAGE COUNTER

- consume_coupon: usage_count += 1 only while under the limit (or unlimited)
- restore_coupon: usage_count -= 1 only while > 0 (order cancelled)

Both are single conditional UPDATEs with F() expressions.
"""

from __future__ import annotations

import logging

from django.db.models import F, Q
from django.utils import timezone

from coupons.models import Coupon
from coupons.models.coupon import normalize_code
from coupons.services.coupon_evaluator import UsageLimitReachedError

logger = logging.getLogger(__name__)

UNLIMITED = Q(usage_limit__isnull=True) | Q(usage_limit=0)


def consume_coupon(coupon: Coupon) -> None:
    updated = (
        Coupon.objects.filter(pk=coupon.pk)
        .filter(UNLIMITED | Q(usage_count__lt=F("usage_limit")))
        .update(usage_count=F("usage_count") + 1, updated_at=timezone.now())
    )
    if not updated:
        raise UsageLimitReachedError()

    logger.info("Coupon consumed", extra={"coupon_code": coupon.code})


def restore_coupon(code) -> bool:
    normalized = normalize_code(code)
    if not normalized:
        return False

    updated = Coupon.objects.filter(code=normalized, usage_count__gt=0).update(
        usage_count=F("usage_count") - 1,
        updated_at=timezone.now(),
    )
    if updated:
        logger.info("Coupon usage restored", extra={"coupon_code": normalized})
    else:
        logger.warning("Coupon usage not restored", extra={"coupon_code": normalized})
    return bool(updated)
