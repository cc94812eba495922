# cart/tests/test_cart.py

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from cart.models import CartItem
from cart.services.cart_service import add_item, clear_cart, get_or_create_cart
from products.models import Product
from products.services.stock_ledger import InsufficientStockError

User = get_user_model()


class CartServiceTests(TestCase):
    """
    GUARANTEES:
    - One cart per user
    - Lines merge per product
    - Cart never holds more than current stock
    - Cart operations never touch stock
    """

    def setUp(self):
        self.user = User.objects.create_user(email="shopper@example.com", password="pass")
        self.product = Product.objects.create(
            name="Canvas Tote",
            sku="TOTE-1",
            price=Decimal("250.00"),
            stock=5,
        )

    def test_cart_created_once_per_user(self):
        first = get_or_create_cart(user=self.user)
        second = get_or_create_cart(user=self.user)
        self.assertEqual(first.pk, second.pk)

    def test_add_merges_quantity_and_snapshots_price(self):
        add_item(user=self.user, product_id=self.product.id, quantity=2)
        add_item(user=self.user, product_id=self.product.id, quantity=1)

        item = CartItem.objects.get(cart__user=self.user, product=self.product)
        self.assertEqual(item.quantity, 3)
        self.assertEqual(item.price, Decimal("250.00"))

        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 5)

    def test_merged_quantity_cannot_exceed_stock(self):
        add_item(user=self.user, product_id=self.product.id, quantity=4)

        with self.assertRaises(InsufficientStockError) as ctx:
            add_item(user=self.user, product_id=self.product.id, quantity=2)

        self.assertEqual(ctx.exception.available, 1)

    def test_clear_cart_removes_all_lines(self):
        add_item(user=self.user, product_id=self.product.id, quantity=1)
        clear_cart(user=self.user)
        self.assertTrue(get_or_create_cart(user=self.user).is_empty)


class CartAPITests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(email="api_shopper@example.com", password="pass")
        self.client.force_authenticate(user=self.user)

        self.product = Product.objects.create(
            name="Wool Scarf",
            sku="SCARF-1",
            price=Decimal("400.00"),
            stock=2,
        )

    def test_get_cart_requires_authentication(self):
        anon = APIClient()
        response = anon.get("/api/cart/")
        self.assertEqual(response.status_code, 401)

    def test_add_then_get(self):
        response = self.client.post(
            "/api/cart/",
            {"product_id": str(self.product.id), "quantity": 2},
            format="json",
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["item_count"], 2)
        self.assertEqual(response.data["subtotal_amount"], "800.00")

        response = self.client.get("/api/cart/")
        self.assertEqual(len(response.data["items"]), 1)

    def test_add_beyond_stock_returns_error_envelope(self):
        response = self.client.post(
            "/api/cart/",
            {"product_id": str(self.product.id), "quantity": 3},
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["error"]["code"], "INSUFFICIENT_STOCK")

    def test_add_unknown_product_returns_404(self):
        response = self.client.post(
            "/api/cart/",
            {"product_id": "00000000-0000-0000-0000-000000000000", "quantity": 1},
            format="json",
        )
        self.assertEqual(response.status_code, 404)

    def test_put_zero_removes_line(self):
        add_item(user=self.user, product_id=self.product.id, quantity=1)

        response = self.client.put(
            f"/api/cart/{self.product.id}/",
            {"quantity": 0},
            format="json",
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["items"], [])

    def test_delete_missing_line_returns_404(self):
        response = self.client.delete(f"/api/cart/{self.product.id}/")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data["error"]["code"], "CART_ITEM_NOT_FOUND")
