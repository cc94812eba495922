# products/admin.py
"""
=====================================================
PATH: products/admin.py
=====================================================

Admin rules:

- Product catalog fields (name, price, category, ...) are editable.
- stock / sales are READ-ONLY here: they move only through the stock ledger
  (orders, cancellations, exchanges, admin order edits).
- Initial stock can be entered when a product is first created.
"""

from __future__ import annotations

from django.contrib import admin

from products.models import Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = (
        "sku",
        "name",
        "category",
        "price",
        "stock",
        "sales",
        "is_active",
        "created_at",
    )
    list_filter = ("is_active", "category", "created_at")
    search_fields = ("sku", "name")
    ordering = ("-created_at",)

    def get_readonly_fields(self, request, obj=None):
        # Existing products: counters belong to the ledger
        if obj is not None:
            return ("stock", "sales", "created_at", "updated_at")
        return ("sales", "created_at", "updated_at")
