# orders/tests/test_orders_api.py

import uuid
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from orders.models import Order
from products.models import Product

User = get_user_model()

ADDRESS = {
    "street": "221 MG Road",
    "city": "Bengaluru",
    "state": "KA",
    "postal_code": "560001",
    "phone": "9123456789",
}


class OrderAPITests(TestCase):
    def setUp(self):
        self.customer = User.objects.create_user(email="shopper@example.com", password="pass")
        self.other = User.objects.create_user(email="other@example.com", password="pass")
        self.admin = User.objects.create_user(email="ops@example.com", password="pass", role=User.ROLE_ADMIN)

        self.product = Product.objects.create(name="Sneakers", sku="SN-1", price=Decimal("1200.00"), stock=2)

        self.client = APIClient()
        self.client.force_authenticate(user=self.customer)

    def _create(self, quantity=1, client=None):
        return (client or self.client).post(
            "/api/orders/",
            {
                "items": [{"product_id": str(self.product.id), "quantity": quantity}],
                "shipping_address": ADDRESS,
            },
            format="json",
        )

    def _as(self, user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    def test_requires_authentication(self):
        self.assertEqual(APIClient().get("/api/orders/").status_code, 401)

    def test_create_order(self):
        response = self._create()

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["status"], "pending")
        self.assertEqual(response.data["total_price"], "1200.00")
        self.assertEqual(response.data["shipping_address"]["city"], "Bengaluru")
        self.assertEqual(len(response.data["items"]), 1)

        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 1)

    def test_insufficient_stock_returns_error_envelope(self):
        response = self._create(quantity=3)

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["error"]["code"], "INSUFFICIENT_STOCK")
        self.assertIn("Only 2 items available", response.data["error"]["message"])

    def test_missing_address_field(self):
        response = self.client.post(
            "/api/orders/",
            {
                "items": [{"product_id": str(self.product.id), "quantity": 1}],
                "shipping_address": {"street": "x"},
            },
            format="json",
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["error"]["code"], "VALIDATION_ERROR")

    def test_list_is_scoped_to_user(self):
        self._create()
        self._create(client=self._as(self.other))

        response = self.client.get("/api/orders/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["count"], 1)
        self.assertEqual(response.data["results"][0]["user_email"], "shopper@example.com")

    def test_retrieve_other_users_order_is_forbidden(self):
        order_id = self._create().data["id"]

        response = self._as(self.other).get(f"/api/orders/{order_id}/")
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.data["error"]["code"], "NOT_AUTHORIZED")

        response = self._as(self.admin).get(f"/api/orders/{order_id}/")
        self.assertEqual(response.status_code, 200)

    def test_retrieve_unknown_order(self):
        response = self.client.get(f"/api/orders/{uuid.uuid4()}/")
        self.assertEqual(response.status_code, 404)

    def test_cancel_twice(self):
        order_id = self._create().data["id"]

        response = self.client.put(f"/api/orders/{order_id}/cancel/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["status"], "cancelled")

        response = self.client.put(f"/api/orders/{order_id}/cancel/")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["error"]["code"], "INVALID_STATE")

        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 2)

    def test_admin_routes_forbidden_for_customer(self):
        order_id = self._create().data["id"]

        self.assertEqual(self.client.get("/api/orders/all/").status_code, 403)
        self.assertEqual(
            self.client.put(f"/api/orders/{order_id}/status/", {"status": "shipped"}, format="json").status_code,
            403,
        )
        self.assertEqual(
            self.client.put(f"/api/orders/{order_id}/exchange/approve/", {"approved": True}, format="json").status_code,
            403,
        )
        self.assertEqual(
            self.client.put(f"/api/orders/{order_id}/update/", {"status": "shipped"}, format="json").status_code,
            403,
        )

    def test_admin_lists_all_orders_by_status(self):
        self._create()
        admin = self._as(self.admin)

        response = admin.get("/api/orders/all/", {"status": "pending"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["count"], 1)

        response = admin.get("/api/orders/all/", {"status": "shipped"})
        self.assertEqual(response.data["count"], 0)

    def test_status_endpoint_unknown_order_is_bad_request(self):
        response = self._as(self.admin).put(
            f"/api/orders/{uuid.uuid4()}/status/",
            {"status": "shipped"},
            format="json",
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["error"]["code"], "ORDER_NOT_FOUND")

    def test_delivery_then_exchange_flow(self):
        order_id = self._create().data["id"]
        admin = self._as(self.admin)

        response = admin.put(f"/api/orders/{order_id}/status/", {"status": "delivered"}, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertIsNotNone(response.data["delivered_at"])

        response = self.client.put(f"/api/orders/{order_id}/exchange/", {"reason": "damaged"}, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["status"], "exchange_requested")
        self.assertEqual(response.data["exchange_fee"], "0.00")

        response = admin.put(f"/api/orders/{order_id}/exchange/approve/", {"approved": True}, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["status"], "exchange_approved")

        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 2)

    def test_admin_update_items(self):
        order_id = self._create().data["id"]

        response = self._as(self.admin).put(
            f"/api/orders/{order_id}/update/",
            {"items": [{"product_id": str(self.product.id), "quantity": 2}]},
            format="json",
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["total_price"], "2400.00")
        self.assertEqual(Order.objects.get(pk=order_id).items.get().quantity, 2)

        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 0)

    def test_admin_cannot_replace_items_of_cancelled_order(self):
        order_id = self._create().data["id"]
        self.client.put(f"/api/orders/{order_id}/cancel/")

        response = self._as(self.admin).put(
            f"/api/orders/{order_id}/update/",
            {"items": [{"product_id": str(self.product.id), "quantity": 2}]},
            format="json",
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["error"]["code"], "INVALID_STATE")

        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 2)
        self.assertEqual(self.product.sales, 0)


class OrderInvoiceAPITests(TestCase):
    def setUp(self):
        self.customer = User.objects.create_user(email="buyer@example.com", password="pass")
        self.admin = User.objects.create_user(email="desk@example.com", password="pass", role=User.ROLE_ADMIN)
        self.socks = Product.objects.create(name="Socks", sku="SK-1", price=Decimal("150.00"), stock=10)

        self.client = APIClient()
        self.client.force_authenticate(user=self.customer)

        self.order_id = self.client.post(
            "/api/orders/",
            {
                "items": [{"product_id": str(self.socks.id), "quantity": 2}],
                "shipping_address": ADDRESS,
            },
            format="json",
        ).data["id"]

    def test_invoice_breaks_down_the_charge(self):
        response = self.client.get(f"/api/orders/{self.order_id}/invoice/")

        self.assertEqual(response.status_code, 200)
        order = Order.objects.get(pk=self.order_id)
        self.assertEqual(response.data["invoice_number"], f"INV-{order.order_no}")
        self.assertEqual(response.data["billed_to"], "buyer@example.com")
        self.assertEqual(response.data["items"][0]["line_total"], "300.00")
        self.assertEqual(response.data["subtotal"], "300.00")
        self.assertEqual(response.data["shipping_fee"], "100.00")
        self.assertEqual(response.data["coupon_discount"], "0.00")
        self.assertEqual(response.data["total_price"], "400.00")
        self.assertEqual(response.data["shipping_address"]["city"], "Bengaluru")

    def test_invoice_is_owner_or_admin(self):
        stranger = User.objects.create_user(email="nosy@example.com", password="pass")
        client = APIClient()
        client.force_authenticate(user=stranger)

        response = client.get(f"/api/orders/{self.order_id}/invoice/")
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.data["error"]["code"], "NOT_AUTHORIZED")

        client.force_authenticate(user=self.admin)
        self.assertEqual(client.get(f"/api/orders/{self.order_id}/invoice/").status_code, 200)

    def test_invoice_of_unknown_order(self):
        response = self.client.get(f"/api/orders/{uuid.uuid4()}/invoice/")
        self.assertEqual(response.status_code, 404)

    def test_invoice_after_admin_repricing_has_no_shipping(self):
        admin = APIClient()
        admin.force_authenticate(user=self.admin)
        admin.put(
            f"/api/orders/{self.order_id}/update/",
            {"items": [{"product_id": str(self.socks.id), "quantity": 3}]},
            format="json",
        )

        response = self.client.get(f"/api/orders/{self.order_id}/invoice/")

        self.assertEqual(response.data["subtotal"], "450.00")
        self.assertEqual(response.data["shipping_fee"], "0.00")
        self.assertEqual(response.data["total_price"], "450.00")
