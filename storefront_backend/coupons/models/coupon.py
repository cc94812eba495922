"""
PATH: coupons/models/coupon.py

COUPON MODEL

Rules:
- code is stored trimmed + upper-cased (unique)
- usage_limit: NULL or 0 means unlimited
- per_user_limit: default 1, 0 means unlimited
- usage_count only moves through coupons.services.coupon_usage
  (conditional UPDATEs), never by editing the instance
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models


def normalize_code(code) -> str:
    return (code or "").strip().upper()


class Coupon(models.Model):
    class DiscountType(models.TextChoices):
        PERCENTAGE = "percentage", "Percentage"
        FIXED = "fixed", "Fixed amount"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    code = models.CharField(max_length=50, unique=True)

    discount_type = models.CharField(max_length=20, choices=DiscountType.choices)
    discount_value = models.DecimalField(max_digits=12, decimal_places=2)
    min_order_value = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
    )

    expiry_date = models.DateTimeField(null=True, blank=True)

    usage_limit = models.PositiveIntegerField(null=True, blank=True)
    usage_count = models.PositiveIntegerField(default=0)
    per_user_limit = models.PositiveIntegerField(default=1)

    is_active = models.BooleanField(default=True)
    is_first_order_only = models.BooleanField(default=False)

    allowed_users = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        blank=True,
        related_name="eligible_coupons",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["is_active", "expiry_date"], name="coupon_active_expiry_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(discount_value__gte=0),
                name="coupon_discount_value_non_negative",
            ),
            models.CheckConstraint(
                condition=models.Q(min_order_value__gte=0),
                name="coupon_min_order_value_non_negative",
            ),
        ]

    @property
    def has_usage_limit(self) -> bool:
        return bool(self.usage_limit)

    @property
    def has_per_user_limit(self) -> bool:
        return bool(self.per_user_limit)

    def clean(self):
        self.code = normalize_code(self.code)
        if not self.code:
            raise ValidationError({"code": "Coupon code is required"})

        if self.discount_value is not None and self.discount_value < 0:
            raise ValidationError({"discount_value": "Discount value cannot be negative"})

        if (
            self.discount_type == self.DiscountType.PERCENTAGE
            and self.discount_value is not None
            and self.discount_value > 100
        ):
            raise ValidationError({"discount_value": "Percentage discount cannot exceed 100"})

    def save(self, *args, **kwargs):
        self.code = normalize_code(self.code)
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.code} ({self.discount_type} {self.discount_value})"
