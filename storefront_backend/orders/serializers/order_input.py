"""
PATH: orders/serializers/order_input.py

Request shapes for the order API (Swagger + basic type checks).
Business rules (required address fields, stock, coupons) live in the services.
"""

from rest_framework import serializers


class ShippingAddressInputSerializer(serializers.Serializer):
    street = serializers.CharField(required=False, allow_blank=True, max_length=255)
    city = serializers.CharField(required=False, allow_blank=True, max_length=100)
    state = serializers.CharField(required=False, allow_blank=True, max_length=100)
    postal_code = serializers.CharField(required=False, allow_blank=True, max_length=20)
    country = serializers.CharField(required=False, allow_blank=True, max_length=100)
    phone = serializers.CharField(required=False, allow_blank=True, max_length=40)
    landmark = serializers.CharField(required=False, allow_blank=True, max_length=255)


class OrderItemInputSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)


class CreateOrderInputSerializer(serializers.Serializer):
    items = OrderItemInputSerializer(many=True, allow_empty=True)
    shipping_address = ShippingAddressInputSerializer()
    coupon_code = serializers.CharField(required=False, allow_blank=True, default="")


class OrderStatusInputSerializer(serializers.Serializer):
    status = serializers.CharField(max_length=32)


class ExchangeRequestInputSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="", max_length=500)


class ExchangeReviewInputSerializer(serializers.Serializer):
    approved = serializers.BooleanField()


class AdminUpdateOrderInputSerializer(serializers.Serializer):
    shipping_address = ShippingAddressInputSerializer(required=False)
    status = serializers.CharField(required=False, max_length=32)
    items = OrderItemInputSerializer(many=True, required=False)
