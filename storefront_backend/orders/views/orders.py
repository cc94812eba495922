# orders/views/orders.py

"""
======================================================
PATH: orders/views/orders.py
======================================================
ORDER API (mounted at /api/orders/)

Customer:
- POST /api/orders/                      create (cash on delivery)
- GET  /api/orders/                      my orders
- GET  /api/orders/<id>/                 owner or admin
- GET  /api/orders/<id>/invoice/         owner or admin, printable invoice
- PUT  /api/orders/<id>/cancel/          owner or admin
- PUT  /api/orders/<id>/exchange/        owner only, within the exchange window

Admin:
- GET  /api/orders/all/?status=...
- PUT  /api/orders/<id>/status/          fulfilment move / exchange completion
- PUT  /api/orders/<id>/exchange/approve/ {"approved": bool}
- PUT  /api/orders/<id>/update/          escape hatch (address / status / items)

Errors:
- domain errors -> {"error": {"code", "message"}} with the error's HTTP status
- serializer errors -> DRF default body (400)
======================================================
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status as http
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import UserRateThrottle

from coupons.services.coupon_evaluator import CouponError
from orders.serializers import (
    AdminUpdateOrderInputSerializer,
    CreateOrderInputSerializer,
    ExchangeRequestInputSerializer,
    ExchangeReviewInputSerializer,
    OrderInvoiceSerializer,
    OrderSerializer,
    OrderStatusInputSerializer,
)
from orders.services.exceptions import OrderNotFoundError, OrderServiceError
from orders.services.order_assembly import create_order
from orders.services.order_transitions import (
    admin_update_order,
    cancel_order,
    get_order_for_actor,
    list_all_orders,
    list_orders_for_user,
    request_exchange,
    review_exchange,
    set_order_status,
)
from permissions.roles import (
    CAP_ORDERS_MANAGE,
    CAP_ORDERS_PLACE,
    CAP_ORDERS_VIEW_ALL,
    HasCapability,
)
from products.services.stock_ledger import StockLedgerError

logger = logging.getLogger(__name__)

DOMAIN_ERRORS = (OrderServiceError, StockLedgerError, CouponError)


class CheckoutThrottle(UserRateThrottle):
    scope = "checkout"


# =====================================================
# API ERROR NORMALIZATION
# =====================================================

def error_response(*, code: str, message: str, http_status: int):
    return Response(
        {"error": {"code": code, "message": message}},
        status=http_status,
    )


def domain_error_response(exc, *, http_status: int | None = None):
    return error_response(
        code=getattr(exc, "code", "ERROR"),
        message=str(exc),
        http_status=http_status or getattr(exc, "http_status", http.HTTP_400_BAD_REQUEST),
    )


# =====================================================
# VIEWSET
# =====================================================

class OrderViewSet(viewsets.GenericViewSet):
    serializer_class = OrderSerializer
    permission_classes = [IsAuthenticated]

    CAPABILITY_BY_ACTION = {
        "create": CAP_ORDERS_PLACE,
        "all_orders": CAP_ORDERS_VIEW_ALL,
        "set_status": CAP_ORDERS_MANAGE,
        "exchange_approve": CAP_ORDERS_MANAGE,
        "admin_update": CAP_ORDERS_MANAGE,
    }

    def get_queryset(self):
        return list_orders_for_user(user=self.request.user)

    @property
    def required_capability(self):
        return self.CAPABILITY_BY_ACTION.get(self.action)

    def get_permissions(self):
        if self.action in self.CAPABILITY_BY_ACTION:
            return [IsAuthenticated(), HasCapability()]
        return [IsAuthenticated()]

    def get_throttles(self):
        throttles = super().get_throttles()
        if self.action == "create":
            throttles.append(CheckoutThrottle())
        return throttles

    def _ok(self, order, *, http_status=http.HTTP_200_OK):
        return Response(OrderSerializer(order).data, status=http_status)

    # ---------------- customer ----------------

    @extend_schema(responses={200: OrderSerializer(many=True)}, description="Orders of the signed-in user")
    def list(self, request):
        qs = self.get_queryset()
        page = self.paginate_queryset(qs)
        if page is not None:
            return self.get_paginated_response(OrderSerializer(page, many=True).data)
        return Response(OrderSerializer(qs, many=True).data)

    @extend_schema(
        request=CreateOrderInputSerializer,
        responses={201: OrderSerializer},
        description="Create an order (cash on delivery). Stock is reserved atomically.",
    )
    def create(self, request):
        serializer = CreateOrderInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            order = create_order(
                user=request.user,
                items=data["items"],
                shipping_address=data["shipping_address"],
                coupon_code=data.get("coupon_code") or None,
            )
        except DOMAIN_ERRORS as exc:
            logger.info(
                "Order creation rejected",
                extra={"user_id": str(request.user.pk), "code": getattr(exc, "code", "")},
            )
            return domain_error_response(exc)

        return self._ok(order, http_status=http.HTTP_201_CREATED)

    @extend_schema(responses={200: OrderSerializer})
    def retrieve(self, request, pk=None):
        try:
            order = get_order_for_actor(actor=request.user, order_id=pk)
        except OrderServiceError as exc:
            return domain_error_response(exc)
        return self._ok(order)

    @extend_schema(responses={200: OrderInvoiceSerializer}, description="Printable invoice for an order")
    @action(detail=True, methods=["get"], url_path="invoice")
    def invoice(self, request, pk=None):
        try:
            order = get_order_for_actor(actor=request.user, order_id=pk)
        except OrderServiceError as exc:
            return domain_error_response(exc)
        return Response(OrderInvoiceSerializer(order).data, status=http.HTTP_200_OK)

    @extend_schema(request=None, responses={200: OrderSerializer}, description="Cancel an order")
    @action(detail=True, methods=["put"], url_path="cancel")
    def cancel(self, request, pk=None):
        try:
            order = cancel_order(actor=request.user, order_id=pk)
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return self._ok(order)

    @extend_schema(
        request=ExchangeRequestInputSerializer,
        responses={200: OrderSerializer},
        description="Request an exchange for a delivered order",
    )
    @action(detail=True, methods=["put"], url_path="exchange")
    def exchange(self, request, pk=None):
        serializer = ExchangeRequestInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = request_exchange(
                actor=request.user,
                order_id=pk,
                reason=serializer.validated_data["reason"],
            )
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return self._ok(order)

    # ---------------- admin ----------------

    @extend_schema(
        parameters=[OpenApiParameter("status", str, required=False)],
        responses={200: OrderSerializer(many=True)},
        description="All orders (admin)",
    )
    @action(detail=False, methods=["get"], url_path="all")
    def all_orders(self, request):
        try:
            qs = list_all_orders(status=(request.query_params.get("status") or "").strip() or None)
        except OrderServiceError as exc:
            return domain_error_response(exc)

        page = self.paginate_queryset(qs)
        if page is not None:
            return self.get_paginated_response(OrderSerializer(page, many=True).data)
        return Response(OrderSerializer(qs, many=True).data)

    @extend_schema(request=OrderStatusInputSerializer, responses={200: OrderSerializer})
    @action(detail=True, methods=["put"], url_path="status")
    def set_status(self, request, pk=None):
        serializer = OrderStatusInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = set_order_status(
                actor=request.user,
                order_id=pk,
                status=serializer.validated_data["status"].strip(),
            )
        except OrderNotFoundError as exc:
            # status endpoint reports an unknown order as a bad request
            return domain_error_response(exc, http_status=http.HTTP_400_BAD_REQUEST)
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return self._ok(order)

    @extend_schema(request=ExchangeReviewInputSerializer, responses={200: OrderSerializer})
    @action(detail=True, methods=["put"], url_path="exchange/approve")
    def exchange_approve(self, request, pk=None):
        serializer = ExchangeReviewInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = review_exchange(
                actor=request.user,
                order_id=pk,
                approved=serializer.validated_data["approved"],
            )
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return self._ok(order)

    @extend_schema(request=AdminUpdateOrderInputSerializer, responses={200: OrderSerializer})
    @action(detail=True, methods=["put"], url_path="update")
    def admin_update(self, request, pk=None):
        serializer = AdminUpdateOrderInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            order = admin_update_order(
                actor=request.user,
                order_id=pk,
                shipping_address=data.get("shipping_address"),
                status=(data.get("status") or "").strip() or None,
                items=data.get("items"),
            )
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return self._ok(order)
