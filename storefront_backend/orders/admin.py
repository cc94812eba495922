from django.contrib import admin

from .models import Order, OrderItem

# =====================================================
# ORDER ITEM INLINE (READ-ONLY SNAPSHOTS)
# =====================================================


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    can_delete = False
    readonly_fields = (
        "product",
        "name",
        "quantity",
        "price",
        "line_total",
        "created_at",
    )

    def has_add_permission(self, request, obj=None):
        return False


# =====================================================
# ORDER ADMIN
# =====================================================


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """
    Read-mostly view. Status, stock and money changes go through the order
    API so that stock reconciliation and fee rules are applied.
    """

    list_display = (
        "order_no",
        "user",
        "status",
        "total_price",
        "coupon_code",
        "payment_method",
        "payment_status",
        "created_at",
    )
    list_filter = ("status", "payment_method", "payment_status", "created_at")
    search_fields = ("order_no", "user__email", "coupon_code", "invoice_number")
    ordering = ("-created_at",)

    readonly_fields = (
        "id",
        "order_no",
        "user",
        "status",
        "total_price",
        "shipping_fee",
        "coupon_code",
        "coupon_discount",
        "cancellation_fee",
        "exchange_fee",
        "exchange_reason",
        "refund_amount",
        "delivered_at",
        "payment_method",
        "payment_status",
        "gateway_order_id",
        "gateway_payment_id",
        "gateway_signature",
        "invoice_number",
        "created_at",
        "updated_at",
    )

    inlines = [OrderItemInline]

    def has_delete_permission(self, request, obj=None):
        return False
