# cart/views/api.py

"""
CART API VIEWS

Routes:
- GET    /api/cart/               -> current cart (created lazily)
- POST   /api/cart/               -> add product (merges quantity)
- DELETE /api/cart/               -> clear cart
- PUT    /api/cart/<product_id>/  -> set quantity (<= 0 removes the line)
- DELETE /api/cart/<product_id>/  -> remove line

Money rule:
- price is OWNED by Product and snapshotted server-side.
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import serializers, status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from cart.serializers import CartSerializer
from cart.services.cart_service import (
    CartItemNotFoundError,
    add_item,
    clear_cart,
    get_or_create_cart,
    remove_item,
    update_item,
)
from permissions.roles import CAP_CART_USE, HasCapability
from products.services.stock_ledger import StockLedgerError


# =====================================================
# SWAGGER INPUT SERIALIZERS
# =====================================================

class AddCartItemInputSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1, default=1)


class UpdateCartItemInputSerializer(serializers.Serializer):
    quantity = serializers.IntegerField()


# =====================================================
# API ERROR NORMALIZATION
# =====================================================

def error_response(*, code: str, message: str, http_status: int):
    return Response(
        {"error": {"code": code, "message": message}},
        status=http_status,
    )


def _cart_payload(cart):
    return CartSerializer(cart).data


# =====================================================
# VIEWS
# =====================================================

class CartView(APIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_CART_USE
    serializer_class = CartSerializer

    @extend_schema(responses={200: CartSerializer}, description="Get (or create) the user's cart")
    def get(self, request):
        cart = get_or_create_cart(user=request.user)
        return Response(_cart_payload(cart), status=status.HTTP_200_OK)

    @extend_schema(
        request=AddCartItemInputSerializer,
        responses={200: CartSerializer},
        description="Add a product to the cart (increments quantity if present)",
    )
    def post(self, request):
        serializer = AddCartItemInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            cart = add_item(
                user=request.user,
                product_id=serializer.validated_data["product_id"],
                quantity=serializer.validated_data["quantity"],
            )
        except StockLedgerError as exc:
            return error_response(code=exc.code, message=str(exc), http_status=exc.http_status)

        return Response(_cart_payload(cart), status=status.HTTP_200_OK)

    @extend_schema(responses={200: CartSerializer}, description="Remove every item from the cart")
    def delete(self, request):
        clear_cart(user=request.user)
        cart = get_or_create_cart(user=request.user)
        return Response(_cart_payload(cart), status=status.HTTP_200_OK)


class CartItemView(APIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_CART_USE
    serializer_class = CartSerializer

    @extend_schema(
        request=UpdateCartItemInputSerializer,
        responses={200: CartSerializer},
        description="Set a cart line's quantity (0 or less removes it)",
    )
    def put(self, request, product_id):
        serializer = UpdateCartItemInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            cart = update_item(
                user=request.user,
                product_id=product_id,
                quantity=serializer.validated_data["quantity"],
            )
        except (StockLedgerError, CartItemNotFoundError) as exc:
            return error_response(code=exc.code, message=str(exc), http_status=exc.http_status)

        return Response(_cart_payload(cart), status=status.HTTP_200_OK)

    @extend_schema(responses={200: CartSerializer}, description="Remove a product from the cart")
    def delete(self, request, product_id):
        try:
            cart = remove_item(user=request.user, product_id=product_id)
        except (StockLedgerError, CartItemNotFoundError) as exc:
            return error_response(code=exc.code, message=str(exc), http_status=exc.http_status)

        return Response(_cart_payload(cart), status=status.HTTP_200_OK)
