"""
PATH: coupons/serializers/coupon.py

- CouponSerializer: admin CRUD (usage_count is server-owned)
- CouponValidateInputSerializer: checkout preview input
"""

from decimal import Decimal

from rest_framework import serializers

from coupons.models import Coupon
from coupons.models.coupon import normalize_code


class CouponSerializer(serializers.ModelSerializer):
    class Meta:
        model = Coupon
        fields = [
            "id",
            "code",
            "discount_type",
            "discount_value",
            "min_order_value",
            "expiry_date",
            "usage_limit",
            "usage_count",
            "per_user_limit",
            "is_active",
            "is_first_order_only",
            "allowed_users",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "usage_count", "created_at", "updated_at"]

    def validate_code(self, value):
        code = normalize_code(value)
        if not code:
            raise serializers.ValidationError("Coupon code is required")

        qs = Coupon.objects.filter(code=code)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError("Coupon code already exists")
        return code

    def validate_discount_value(self, value):
        if value < 0:
            raise serializers.ValidationError("Discount value cannot be negative")
        return value

    def validate_min_order_value(self, value):
        if value < 0:
            raise serializers.ValidationError("Minimum order value cannot be negative")
        return value

    def validate(self, attrs):
        discount_type = attrs.get("discount_type", getattr(self.instance, "discount_type", None))
        discount_value = attrs.get("discount_value", getattr(self.instance, "discount_value", None))

        if (
            discount_type == Coupon.DiscountType.PERCENTAGE
            and discount_value is not None
            and discount_value > 100
        ):
            raise serializers.ValidationError(
                {"discount_value": "Percentage discount cannot exceed 100"}
            )
        return attrs


class CouponValidateInputSerializer(serializers.Serializer):
    """
    cart_value: merchandise subtotal (shipping excluded). Optional: when it is
    omitted the whole order_total is treated as merchandise.
    order_total: cart_value + shipping, before discount.
    """

    code = serializers.CharField(max_length=50)
    cart_value = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal("0.00"), required=False
    )
    order_total = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal("0.01")
    )

    def validate(self, attrs):
        if attrs.get("cart_value") is None:
            attrs["cart_value"] = attrs["order_total"]

        if attrs["cart_value"] > attrs["order_total"]:
            raise serializers.ValidationError(
                {"cart_value": "cart_value cannot exceed order_total"}
            )
        return attrs
