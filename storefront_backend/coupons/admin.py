from django.contrib import admin

from .models import Coupon


@admin.register(Coupon)
class CouponAdmin(admin.ModelAdmin):
    list_display = (
        "code",
        "discount_type",
        "discount_value",
        "min_order_value",
        "expiry_date",
        "usage_count",
        "usage_limit",
        "per_user_limit",
        "is_active",
    )
    list_filter = ("is_active", "discount_type", "is_first_order_only")
    search_fields = ("code",)
    ordering = ("-created_at",)
    filter_horizontal = ("allowed_users",)

    # usage_count moves only with orders
    readonly_fields = ("usage_count", "created_at", "updated_at")
