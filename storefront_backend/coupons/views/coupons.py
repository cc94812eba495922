# coupons/views/coupons.py

"""
======================================================
PATH: coupons/views/coupons.py
======================================================
COUPON VIEWSET

- Admin CRUD:      /api/coupons/ , /api/coupons/<id>/
- Checkout preview: POST /api/coupons/validate/  (any signed-in customer)

Validation is side-effect free: it never consumes the coupon.
======================================================
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from coupons.models import Coupon
from coupons.serializers import CouponSerializer, CouponValidateInputSerializer
from coupons.services.coupon_evaluator import CouponError, validate_coupon
from permissions.roles import CAP_COUPONS_MANAGE, CAP_COUPONS_VALIDATE, HasCapability

logger = logging.getLogger(__name__)


def error_response(*, code: str, message: str, http_status: int):
    return Response(
        {"error": {"code": code, "message": message}},
        status=http_status,
    )


class CouponViewSet(viewsets.ModelViewSet):
    queryset = Coupon.objects.all().order_by("-created_at")
    serializer_class = CouponSerializer
    permission_classes = [IsAuthenticated, HasCapability]
    filterset_fields = ["is_active", "discount_type", "is_first_order_only"]

    @property
    def required_capability(self):
        if self.action == "validate":
            return CAP_COUPONS_VALIDATE
        return CAP_COUPONS_MANAGE

    def perform_create(self, serializer):
        coupon = serializer.save()
        logger.info("Coupon created", extra={"coupon_code": coupon.code, "user_id": str(self.request.user.pk)})

    def perform_destroy(self, instance):
        logger.info("Coupon deleted", extra={"coupon_code": instance.code, "user_id": str(self.request.user.pk)})
        instance.delete()

    @extend_schema(
        request=CouponValidateInputSerializer,
        responses={
            200: {
                "type": "object",
                "properties": {
                    "valid": {"type": "boolean"},
                    "code": {"type": "string"},
                    "discount_type": {"type": "string"},
                    "discount_value": {"type": "string"},
                    "discount_amount": {"type": "string"},
                    "shipping_cost": {"type": "string"},
                    "final_total": {"type": "string"},
                },
            }
        },
        description="Preview a coupon against a cart (no usage consumed).",
    )
    @action(detail=False, methods=["post"], url_path="validate")
    def validate(self, request):
        serializer = CouponValidateInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            result = validate_coupon(
                data["code"],
                user=request.user,
                cart_value=data["cart_value"],
                order_total=data["order_total"],
            )
        except CouponError as exc:
            return error_response(code=exc.code, message=str(exc), http_status=exc.http_status)

        coupon = result.coupon
        return Response(
            {
                "valid": True,
                "code": coupon.code,
                "discount_type": coupon.discount_type,
                "discount_value": str(coupon.discount_value),
                "min_order_value": str(coupon.min_order_value),
                "is_first_order_only": coupon.is_first_order_only,
                "discount_amount": str(result.discount_amount),
                "shipping_cost": str(result.shipping_cost),
                "final_total": str(result.final_total),
            },
            status=status.HTTP_200_OK,
        )
