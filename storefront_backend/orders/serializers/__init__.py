from .order import OrderInvoiceSerializer, OrderItemSerializer, OrderSerializer
from .order_input import (
    AdminUpdateOrderInputSerializer,
    CreateOrderInputSerializer,
    ExchangeRequestInputSerializer,
    ExchangeReviewInputSerializer,
    OrderItemInputSerializer,
    OrderStatusInputSerializer,
    ShippingAddressInputSerializer,
)

__all__ = [
    "OrderInvoiceSerializer",
    "OrderItemSerializer",
    "OrderSerializer",
    "AdminUpdateOrderInputSerializer",
    "CreateOrderInputSerializer",
    "ExchangeRequestInputSerializer",
    "ExchangeReviewInputSerializer",
    "OrderItemInputSerializer",
    "OrderStatusInputSerializer",
    "ShippingAddressInputSerializer",
]
