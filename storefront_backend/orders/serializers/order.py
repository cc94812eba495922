# orders/serializers/order.py

"""
ORDER READ SERIALIZERS

- Money fields are server-computed snapshots (read-only)
- shipping_address is exposed as one nested object
- OrderInvoiceSerializer is the printable invoice view of an order
"""

from decimal import Decimal

from rest_framework import serializers

from orders.models import Order, OrderItem


class OrderItemSerializer(serializers.ModelSerializer):
    product_id = serializers.UUIDField(read_only=True, allow_null=True)
    line_total = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product_id",
            "name",
            "quantity",
            "price",
            "line_total",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    user_email = serializers.EmailField(source="user.email", read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)
    shipping_address = serializers.DictField(read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_no",
            "user",
            "user_email",
            "items",
            "total_price",
            "shipping_fee",
            "coupon_code",
            "coupon_discount",
            "status",
            "shipping_address",
            "cancellation_fee",
            "exchange_fee",
            "exchange_reason",
            "refund_amount",
            "delivered_at",
            "payment_method",
            "payment_status",
            "gateway_order_id",
            "gateway_payment_id",
            "invoice_number",
            "tracking_number",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class OrderInvoiceSerializer(serializers.ModelSerializer):
    """
    Print-ready invoice payload.

    subtotal is the sum of the item snapshots; total_price stays the amount
    actually charged.
    """

    billed_to = serializers.EmailField(source="user.email", read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)
    shipping_address = serializers.DictField(read_only=True)
    subtotal = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "invoice_number",
            "order_no",
            "created_at",
            "status",
            "billed_to",
            "shipping_address",
            "items",
            "subtotal",
            "shipping_fee",
            "coupon_code",
            "coupon_discount",
            "total_price",
            "payment_method",
            "payment_status",
            "cancellation_fee",
            "exchange_fee",
            "refund_amount",
        ]
        read_only_fields = fields

    def get_subtotal(self, obj) -> str:
        return str(sum((item.line_total for item in obj.items.all()), Decimal("0.00")))
