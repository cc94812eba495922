# orders/models/order.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone


class Order(models.Model):
    """
    Storefront customer order.

    Key rules:
    - Created only by orders.services.order_assembly.create_order
    - status moves only through orders.services.order_transitions
      (optimistic UPDATE ... WHERE status = <expected>)
    - item prices/names are snapshots taken at creation; only the admin
      update path recomputes them from the live catalog
    - never deleted in normal flow
    """

    STATUS_PENDING = "pending"
    STATUS_PROCESSING = "processing"
    STATUS_SHIPPED = "shipped"
    STATUS_DELIVERED = "delivered"
    STATUS_CANCELLED = "cancelled"
    STATUS_EXCHANGE_REQUESTED = "exchange_requested"
    STATUS_EXCHANGE_APPROVED = "exchange_approved"
    STATUS_EXCHANGED = "exchanged"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_PROCESSING, "Processing"),
        (STATUS_SHIPPED, "Shipped"),
        (STATUS_DELIVERED, "Delivered"),
        (STATUS_CANCELLED, "Cancelled"),
        (STATUS_EXCHANGE_REQUESTED, "Exchange Requested"),
        (STATUS_EXCHANGE_APPROVED, "Exchange Approved"),
        (STATUS_EXCHANGED, "Exchanged"),
    ]

    PAYMENT_CARD = "card"
    PAYMENT_COD = "cod"
    PAYMENT_UPI = "upi"
    PAYMENT_WALLET = "wallet"

    PAYMENT_METHOD_CHOICES = [
        (PAYMENT_CARD, "Card"),
        (PAYMENT_COD, "Cash on Delivery"),
        (PAYMENT_UPI, "UPI"),
        (PAYMENT_WALLET, "Wallet"),
    ]

    PAYMENT_STATUS_PENDING = "pending"
    PAYMENT_STATUS_PAID = "paid"
    PAYMENT_STATUS_FAILED = "failed"
    PAYMENT_STATUS_REFUNDED = "refunded"

    PAYMENT_STATUS_CHOICES = [
        (PAYMENT_STATUS_PENDING, "Pending"),
        (PAYMENT_STATUS_PAID, "Paid"),
        (PAYMENT_STATUS_FAILED, "Failed"),
        (PAYMENT_STATUS_REFUNDED, "Refunded"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order_no = models.CharField(
        max_length=64,
        unique=True,
        blank=True,
        help_text="System-generated public order number",
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders",
    )

    # Money (server authoritative)
    total_price = models.DecimalField(max_digits=12, decimal_places=2)
    # shipping charged at checkout; cleared when an admin re-prices the items
    shipping_fee = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    coupon_code = models.CharField(max_length=50, blank=True, default="")
    coupon_discount = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )

    status = models.CharField(max_length=32, choices=STATUS_CHOICES, default=STATUS_PENDING)

    # Shipping address
    shipping_street = models.CharField(max_length=255)
    shipping_city = models.CharField(max_length=100)
    shipping_state = models.CharField(max_length=100)
    shipping_postal_code = models.CharField(max_length=20)
    shipping_country = models.CharField(max_length=100)
    shipping_phone = models.CharField(max_length=40)
    shipping_landmark = models.CharField(max_length=255, blank=True, default="")

    # Lifecycle money + bookkeeping
    cancellation_fee = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    exchange_fee = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    exchange_reason = models.CharField(max_length=500, blank=True, default="")
    refund_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)

    # Payment
    payment_method = models.CharField(
        max_length=16, choices=PAYMENT_METHOD_CHOICES, default=PAYMENT_COD
    )
    payment_status = models.CharField(
        max_length=16, choices=PAYMENT_STATUS_CHOICES, default=PAYMENT_STATUS_PENDING
    )
    gateway_order_id = models.CharField(max_length=100, blank=True, default="")
    gateway_payment_id = models.CharField(max_length=100, blank=True, default="")
    gateway_signature = models.CharField(max_length=255, blank=True, default="")

    invoice_number = models.CharField(max_length=64, blank=True, default="")
    tracking_number = models.CharField(max_length=100, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "status"], name="order_user_status_idx"),
            models.Index(fields=["status", "delivered_at"], name="order_status_delivered_idx"),
            models.Index(fields=["user", "coupon_code"], name="order_user_coupon_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(total_price__gte=0),
                name="order_total_price_non_negative",
            ),
            models.CheckConstraint(
                condition=models.Q(coupon_discount__gte=0),
                name="order_coupon_discount_non_negative",
            ),
            models.UniqueConstraint(
                fields=["gateway_payment_id"],
                condition=~models.Q(gateway_payment_id=""),
                name="order_unique_gateway_payment_id",
            ),
        ]

    @property
    def shipping_address(self) -> dict:
        return {
            "street": self.shipping_street,
            "city": self.shipping_city,
            "state": self.shipping_state,
            "postal_code": self.shipping_postal_code,
            "country": self.shipping_country,
            "phone": self.shipping_phone,
            "landmark": self.shipping_landmark,
        }

    def save(self, *args, **kwargs):
        if not self.order_no:
            prefix = timezone.now().strftime("ORD%Y%m%d")
            self.order_no = f"{prefix}-{uuid.uuid4().hex[:8].upper()}"

        if not self.invoice_number:
            self.invoice_number = f"INV-{self.order_no}"

        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.order_no} | {self.total_price} | {self.status}"
