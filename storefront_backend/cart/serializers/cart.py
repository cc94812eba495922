# cart/serializers/cart.py

"""
CART SERIALIZER

Totals are computed server-side (never trusted from client).
"""

from decimal import Decimal

from rest_framework import serializers

from cart.models import Cart
from .cart_item import CartItemSerializer


class CartSerializer(serializers.ModelSerializer):
    items = CartItemSerializer(many=True, read_only=True)

    item_count = serializers.SerializerMethodField(read_only=True)
    subtotal_amount = serializers.SerializerMethodField(read_only=True)

    class Meta:
        model = Cart
        fields = [
            "id",
            "user",
            "items",
            "item_count",
            "subtotal_amount",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_item_count(self, obj) -> int:
        # total units across lines, not number of lines
        return sum(int(i.quantity or 0) for i in obj.items.all())

    def get_subtotal_amount(self, obj) -> str:
        subtotal = sum((i.line_total for i in obj.items.all()), Decimal("0.00"))
        return f"{subtotal:.2f}"
