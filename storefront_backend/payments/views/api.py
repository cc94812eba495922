# payments/views/api.py

"""
PAYMENTS API (mounted at /api/payments/)

- POST create-order/    -> gateway order for the checkout amount
- POST verify-payment/  -> verify signature, then create the paid order
"""

from __future__ import annotations

import logging
from decimal import Decimal

from drf_spectacular.utils import extend_schema
from rest_framework import serializers, status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import UserRateThrottle
from rest_framework.views import APIView

from coupons.services.coupon_evaluator import CouponError
from orders.serializers import OrderItemInputSerializer, OrderSerializer, ShippingAddressInputSerializer
from orders.services.exceptions import OrderServiceError
from payments.services.payment_confirmation import confirm_paid_order
from payments.services.razorpay import PaymentGatewayError, create_gateway_order
from permissions.roles import CAP_ORDERS_PLACE, HasCapability
from products.services.stock_ledger import StockLedgerError

logger = logging.getLogger(__name__)


class CheckoutThrottle(UserRateThrottle):
    scope = "checkout"


# =====================================================
# INPUT SERIALIZERS
# =====================================================

class CreateGatewayOrderInputSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0.01"))
    currency = serializers.CharField(required=False, allow_blank=True, max_length=3, default="")
    receipt = serializers.CharField(required=False, allow_blank=True, max_length=40, default="")


class VerifyPaymentInputSerializer(serializers.Serializer):
    razorpay_order_id = serializers.CharField(allow_blank=True)
    razorpay_payment_id = serializers.CharField(allow_blank=True)
    razorpay_signature = serializers.CharField(allow_blank=True)

    items = OrderItemInputSerializer(many=True, allow_empty=True)
    shipping_address = ShippingAddressInputSerializer()
    coupon_code = serializers.CharField(required=False, allow_blank=True, default="")
    total_amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0.01"))


def error_response(*, code: str, message: str, http_status: int):
    return Response(
        {"error": {"code": code, "message": message}},
        status=http_status,
    )


# =====================================================
# VIEWS
# =====================================================

class CreateGatewayOrderView(APIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_ORDERS_PLACE
    throttle_classes = [CheckoutThrottle]

    @extend_schema(
        request=CreateGatewayOrderInputSerializer,
        responses={200: dict},
        description="Create a gateway order for the checkout amount",
    )
    def post(self, request):
        serializer = CreateGatewayOrderInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        receipt = data["receipt"] or f"rcpt_{str(request.user.pk)[-6:]}"

        try:
            result = create_gateway_order(
                amount=data["amount"],
                currency=data["currency"] or None,
                receipt=receipt,
            )
        except ValueError as exc:
            return error_response(code="VALIDATION_ERROR", message=str(exc), http_status=status.HTTP_400_BAD_REQUEST)
        except PaymentGatewayError as exc:
            logger.error("Gateway order failed", extra={"user_id": str(request.user.pk), "error": str(exc)})
            return error_response(code=exc.code, message=str(exc), http_status=exc.http_status)

        return Response(result, status=status.HTTP_200_OK)


class VerifyPaymentView(APIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_ORDERS_PLACE
    throttle_classes = [CheckoutThrottle]

    @extend_schema(
        request=VerifyPaymentInputSerializer,
        responses={201: OrderSerializer},
        description="Verify the gateway signature and create the paid order",
    )
    def post(self, request):
        serializer = VerifyPaymentInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            order, created = confirm_paid_order(
                user=request.user,
                gateway_order_id=data["razorpay_order_id"],
                gateway_payment_id=data["razorpay_payment_id"],
                signature=data["razorpay_signature"],
                items=data["items"],
                shipping_address=data["shipping_address"],
                coupon_code=data.get("coupon_code") or None,
                amount=data["total_amount"],
            )
        except (OrderServiceError, StockLedgerError, CouponError, PaymentGatewayError) as exc:
            return error_response(code=exc.code, message=str(exc), http_status=exc.http_status)

        return Response(
            {"success": True, "order": OrderSerializer(order).data},
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )
