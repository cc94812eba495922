"""
PATH: cart/models/__init__.py

Cart models export surface.
"""

from .cart import Cart
from .cart_item import CartItem

__all__ = [
    "Cart",
    "CartItem",
]
