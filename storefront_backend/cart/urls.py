"""
PATH: cart/urls.py

CART URLS (mounted at /api/cart/)
"""

from django.urls import path

from cart.views.api import CartItemView, CartView

app_name = "cart"

urlpatterns = [
    path("", CartView.as_view(), name="cart"),
    path("<uuid:product_id>/", CartItemView.as_view(), name="cart-item"),
]
