# products/models/product.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models


class Product(models.Model):
    """
    Represents a sellable catalog product.

    STOCK MODEL (IMPORTANT):
    - stock is the available on-hand count; it can never go below zero
      (DB check constraint backs the rule)
    - sales moves opposite to stock on order / cancel / exchange
    - Both counters are mutated ONLY by products.services.stock_ledger
      (conditional UPDATEs with F() expressions)

    PRICE:
    - price is the current selling price; orders snapshot it at creation
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=200, db_index=True)
    description = models.TextField(blank=True, default="")
    category = models.CharField(max_length=100, blank=True, default="", db_index=True)
    sku = models.CharField(max_length=128, unique=True, null=True, blank=True)

    price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
    )

    stock = models.PositiveIntegerField(default=0)
    sales = models.IntegerField(default=0)

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(stock__gte=0),
                name="product_stock_non_negative",
            ),
            models.CheckConstraint(
                condition=models.Q(price__gte=0),
                name="product_price_non_negative",
            ),
        ]

    def clean(self):
        if self.price is None or Decimal(self.price) < Decimal("0.00"):
            raise ValidationError("Price cannot be negative")

        if self.category:
            self.category = self.category.strip().lower()

    def __str__(self):
        return f"{self.name} ({self.stock} in stock)"
