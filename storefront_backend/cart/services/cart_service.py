# cart/services/cart_service.py

"""
CART SERVICE

Purpose:
- Resolve (or lazily create) the user's single cart.
- Add / update / remove lines with a stock sanity check.
- Clear the cart after a successful order.

Rules:
- Cart quantities never reserve stock; stock is reserved only when an order
  is created. The checks here are advisory (early feedback to the shopper).
- price is snapshotted from Product.price on every add/update.
"""

from __future__ import annotations

import logging

from django.db import transaction

from cart.models import Cart, CartItem
from products.models import Product
from products.services.stock_ledger import (
    InsufficientStockError,
    ProductNotFoundError,
    normalize_product_id,
    require_positive_qty,
)

logger = logging.getLogger(__name__)


class CartItemNotFoundError(Exception):
    code = "CART_ITEM_NOT_FOUND"
    http_status = 404

    def __init__(self, product_id):
        self.product_id = product_id
        super().__init__("Item not found in cart")


def get_or_create_cart(*, user) -> Cart:
    cart, _ = Cart.objects.get_or_create(user=user)
    return cart


def _get_product(product_id) -> Product:
    pid = normalize_product_id(product_id)
    product = Product.objects.filter(pk=pid, is_active=True).first()
    if product is None:
        raise ProductNotFoundError(pid)
    return product


@transaction.atomic
def add_item(*, user, product_id, quantity) -> Cart:
    """
    Add quantity of a product, merging into an existing line.
    The merged quantity must still fit in stock.
    """
    qty = require_positive_qty(quantity)
    product = _get_product(product_id)
    cart = get_or_create_cart(user=user)

    item = CartItem.objects.select_for_update().filter(cart=cart, product=product).first()
    existing = int(item.quantity) if item else 0

    if existing + qty > int(product.stock):
        raise InsufficientStockError(
            product_id=product.pk,
            product_name=product.name,
            available=max(int(product.stock) - existing, 0),
            requested=qty,
        )

    if item is None:
        CartItem.objects.create(cart=cart, product=product, quantity=qty, price=product.price)
    else:
        item.quantity = existing + qty
        item.price = product.price
        item.save(update_fields=["quantity", "price"])

    logger.info(
        "Cart item added",
        extra={"user_id": str(user.pk), "product_id": str(product.pk), "quantity": qty},
    )
    return cart


@transaction.atomic
def update_item(*, user, product_id, quantity) -> Cart:
    """
    Set a line's quantity. quantity <= 0 removes the line.
    """
    qty = int(quantity)
    if qty <= 0:
        return remove_item(user=user, product_id=product_id)

    product = _get_product(product_id)
    cart = get_or_create_cart(user=user)

    if qty > int(product.stock):
        raise InsufficientStockError(
            product_id=product.pk,
            product_name=product.name,
            available=int(product.stock),
            requested=qty,
        )

    item = CartItem.objects.select_for_update().filter(cart=cart, product=product).first()
    if item is None:
        raise CartItemNotFoundError(product.pk)

    item.quantity = qty
    item.price = product.price
    item.save(update_fields=["quantity", "price"])
    return cart


@transaction.atomic
def remove_item(*, user, product_id) -> Cart:
    pid = normalize_product_id(product_id)
    cart = get_or_create_cart(user=user)

    deleted, _ = CartItem.objects.filter(cart=cart, product_id=pid).delete()
    if not deleted:
        raise CartItemNotFoundError(pid)
    return cart


def clear_cart(*, user) -> None:
    """
    Remove every line from the user's cart (no-op if there is no cart).
    """
    deleted, _ = CartItem.objects.filter(cart__user=user).delete()
    if deleted:
        logger.info("Cart cleared", extra={"user_id": str(user.pk), "lines": deleted})
