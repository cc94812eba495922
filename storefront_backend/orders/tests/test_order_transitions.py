# orders/tests/test_order_transitions.py

from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.utils import timezone

from coupons.models import Coupon
from orders.models import Order
from orders.services.exceptions import (
    OrderNotFoundError,
    OrderValidationError,
    StateConflictError,
    UnauthorizedError,
)
from orders.services.order_assembly import create_order
from orders.services.order_transitions import (
    admin_update_order,
    cancel_order,
    get_order_for_actor,
    list_all_orders,
    request_exchange,
    review_exchange,
    set_order_status,
)
from products.models import Product
from products.services.stock_ledger import InsufficientStockError, ProductNotFoundError

User = get_user_model()

ADDRESS = {
    "street": "4 Lake View",
    "city": "Chennai",
    "state": "TN",
    "postal_code": "600001",
    "phone": "9000000000",
}


class OrderTransitionTestBase(TestCase):
    def setUp(self):
        self.owner = User.objects.create_user(email="owner@example.com", password="pass")
        self.stranger = User.objects.create_user(email="stranger@example.com", password="pass")
        self.admin = User.objects.create_user(email="staff@example.com", password="pass", role=User.ROLE_ADMIN)

        self.jacket = Product.objects.create(name="Rain Jacket", sku="RJ-1", price=Decimal("400.00"), stock=5)
        self.cap = Product.objects.create(name="Cap", sku="CAP-1", price=Decimal("150.00"), stock=1)

        self.order = create_order(
            user=self.owner,
            items=[{"product_id": self.jacket.id, "quantity": 2}],
            shipping_address=ADDRESS,
        )

    def _product(self, product):
        product.refresh_from_db()
        return product

    def _force_status(self, status, **extra):
        Order.objects.filter(pk=self.order.pk).update(status=status, **extra)

    def _deliver(self):
        return set_order_status(actor=self.admin, order_id=self.order.id, status=Order.STATUS_DELIVERED)


class CancelOrderTests(OrderTransitionTestBase):
    def test_cancel_pending_is_free_and_releases_stock(self):
        order = cancel_order(actor=self.owner, order_id=self.order.id)

        self.assertEqual(order.status, Order.STATUS_CANCELLED)
        self.assertEqual(order.cancellation_fee, Decimal("0.00"))
        # 800 + 100 shipping
        self.assertEqual(order.refund_amount, Decimal("900.00"))

        jacket = self._product(self.jacket)
        self.assertEqual(jacket.stock, 5)
        self.assertEqual(jacket.sales, 0)

    def test_cancel_processing_charges_fee(self):
        self._force_status(Order.STATUS_PROCESSING)

        order = cancel_order(actor=self.owner, order_id=self.order.id)

        self.assertEqual(order.cancellation_fee, Decimal("100.00"))
        self.assertEqual(order.refund_amount, Decimal("800.00"))

    def test_second_cancel_fails_without_double_release(self):
        cancel_order(actor=self.owner, order_id=self.order.id)

        with self.assertRaisesMessage(StateConflictError, "Order is already cancelled"):
            cancel_order(actor=self.admin, order_id=self.order.id)

        self.assertEqual(self._product(self.jacket).stock, 5)

    def test_cannot_cancel_after_shipping(self):
        self._force_status(Order.STATUS_SHIPPED)

        with self.assertRaises(StateConflictError):
            cancel_order(actor=self.owner, order_id=self.order.id)

        self.assertEqual(self._product(self.jacket).stock, 3)

    def test_stranger_cannot_cancel(self):
        with self.assertRaises(UnauthorizedError):
            cancel_order(actor=self.stranger, order_id=self.order.id)

    def test_cancel_restores_coupon_usage(self):
        coupon = Coupon.objects.create(
            code="TENOFF",
            discount_type=Coupon.DiscountType.FIXED,
            discount_value=Decimal("10.00"),
        )
        order = create_order(
            user=self.stranger,
            items=[{"product_id": self.cap.id, "quantity": 1}],
            shipping_address=ADDRESS,
            coupon_code="TENOFF",
        )
        coupon.refresh_from_db()
        self.assertEqual(coupon.usage_count, 1)

        cancel_order(actor=self.stranger, order_id=order.id)

        coupon.refresh_from_db()
        self.assertEqual(coupon.usage_count, 0)
        self.assertEqual(self._product(self.cap).stock, 1)

    def test_cancel_skips_deleted_products(self):
        order = create_order(
            user=self.owner,
            items=[
                {"product_id": self.cap.id, "quantity": 1},
                {"product_id": self.jacket.id, "quantity": 1},
            ],
            shipping_address=ADDRESS,
        )
        self.cap.delete()

        with self.assertLogs("products.services.stock_ledger", level="WARNING"):
            cancel_order(actor=self.owner, order_id=order.id)

        self.assertEqual(self._product(self.jacket).stock, 3)

    def test_unknown_order(self):
        with self.assertRaises(OrderNotFoundError):
            cancel_order(actor=self.owner, order_id="not-a-uuid")


class StatusTests(OrderTransitionTestBase):
    def test_forward_skip_sets_delivered_at(self):
        order = self._deliver()

        self.assertEqual(order.status, Order.STATUS_DELIVERED)
        self.assertIsNotNone(order.delivered_at)

    def test_backward_move_rejected(self):
        self._force_status(Order.STATUS_SHIPPED)

        with self.assertRaises(StateConflictError):
            set_order_status(actor=self.admin, order_id=self.order.id, status=Order.STATUS_PROCESSING)

    def test_unknown_status_rejected(self):
        with self.assertRaises(OrderValidationError):
            set_order_status(actor=self.admin, order_id=self.order.id, status="lost")

    def test_customer_cannot_set_status(self):
        with self.assertRaises(UnauthorizedError):
            set_order_status(actor=self.owner, order_id=self.order.id, status=Order.STATUS_SHIPPED)

    def test_list_all_orders_filters_by_status(self):
        self.assertEqual(list_all_orders(status=Order.STATUS_PENDING).count(), 1)
        self.assertEqual(list_all_orders(status=Order.STATUS_SHIPPED).count(), 0)

        with self.assertRaises(OrderValidationError):
            list(list_all_orders(status="bogus"))

    def test_read_is_owner_or_admin(self):
        self.assertEqual(get_order_for_actor(actor=self.owner, order_id=self.order.id).pk, self.order.pk)
        self.assertEqual(get_order_for_actor(actor=self.admin, order_id=self.order.id).pk, self.order.pk)

        with self.assertRaises(UnauthorizedError):
            get_order_for_actor(actor=self.stranger, order_id=self.order.id)


class ExchangeTests(OrderTransitionTestBase):
    def test_damaged_exchange_is_free(self):
        self._deliver()

        order = request_exchange(actor=self.owner, order_id=self.order.id, reason="damaged")

        self.assertEqual(order.status, Order.STATUS_EXCHANGE_REQUESTED)
        self.assertEqual(order.exchange_fee, Decimal("0.00"))
        self.assertEqual(order.exchange_reason, "damaged")

    def test_changed_mind_exchange_is_charged(self):
        self._deliver()

        order = request_exchange(actor=self.owner, order_id=self.order.id, reason="changed_mind")

        self.assertEqual(order.exchange_fee, Decimal("100.00"))

    def test_exchange_window_expired(self):
        self._deliver()
        Order.objects.filter(pk=self.order.pk).update(delivered_at=timezone.now() - timedelta(days=4))

        with self.assertRaisesMessage(StateConflictError, "Exchange window expired"):
            request_exchange(actor=self.owner, order_id=self.order.id, reason="damaged")

    def test_exchange_requires_delivery(self):
        with self.assertRaisesMessage(StateConflictError, "Can only exchange delivered orders"):
            request_exchange(actor=self.owner, order_id=self.order.id)

    def test_only_owner_requests_exchange(self):
        self._deliver()

        with self.assertRaises(UnauthorizedError):
            request_exchange(actor=self.admin, order_id=self.order.id)

    def test_reason_length_limit(self):
        self._deliver()

        with self.assertRaises(OrderValidationError):
            request_exchange(actor=self.owner, order_id=self.order.id, reason="x" * 501)

    def test_approve_releases_stock_then_complete(self):
        self._deliver()
        request_exchange(actor=self.owner, order_id=self.order.id, reason="defective")

        order = review_exchange(actor=self.admin, order_id=self.order.id, approved=True)

        self.assertEqual(order.status, Order.STATUS_EXCHANGE_APPROVED)
        self.assertEqual(self._product(self.jacket).stock, 5)

        order = set_order_status(actor=self.admin, order_id=self.order.id, status=Order.STATUS_EXCHANGED)
        self.assertEqual(order.status, Order.STATUS_EXCHANGED)

    def test_reject_returns_to_delivered(self):
        self._deliver()
        request_exchange(actor=self.owner, order_id=self.order.id, reason="changed_mind")

        order = review_exchange(actor=self.admin, order_id=self.order.id, approved=False)

        self.assertEqual(order.status, Order.STATUS_DELIVERED)
        self.assertEqual(order.exchange_reason, "")
        self.assertEqual(order.exchange_fee, Decimal("0.00"))
        self.assertEqual(self._product(self.jacket).stock, 3)

    def test_review_without_request(self):
        self._deliver()

        with self.assertRaisesMessage(StateConflictError, "No exchange request found"):
            review_exchange(actor=self.admin, order_id=self.order.id, approved=True)


class AdminUpdateTests(OrderTransitionTestBase):
    def test_replacing_items_reconciles_stock(self):
        order = admin_update_order(
            actor=self.admin,
            order_id=self.order.id,
            items=[
                {"product_id": self.jacket.id, "quantity": 4},
                {"product_id": self.cap.id, "quantity": 1},
            ],
        )

        self.assertEqual(self._product(self.jacket).stock, 1)
        self.assertEqual(self._product(self.cap).stock, 0)
        self.assertEqual(order.items.count(), 2)
        self.assertEqual(order.total_price, Decimal("1750.00"))

    def test_reducing_items_releases_stock(self):
        admin_update_order(
            actor=self.admin,
            order_id=self.order.id,
            items=[{"product_id": self.jacket.id, "quantity": 1}],
        )

        jacket = self._product(self.jacket)
        self.assertEqual(jacket.stock, 4)
        self.assertEqual(jacket.sales, 1)

    def test_items_of_cancelled_order_cannot_be_replaced(self):
        cancel_order(actor=self.owner, order_id=self.order.id)

        with self.assertRaises(StateConflictError):
            admin_update_order(
                actor=self.admin,
                order_id=self.order.id,
                items=[{"product_id": self.cap.id, "quantity": 1}],
            )

        jacket = self._product(self.jacket)
        self.assertEqual(jacket.stock, 5)
        self.assertEqual(jacket.sales, 0)
        self.assertEqual(self._product(self.cap).stock, 1)
        self.assertEqual(self.order.items.get().product_id, self.jacket.id)

    def test_items_of_approved_exchange_cannot_be_replaced(self):
        self._deliver()
        request_exchange(actor=self.owner, order_id=self.order.id, reason="wrong_size")
        review_exchange(actor=self.admin, order_id=self.order.id, approved=True)

        with self.assertRaises(StateConflictError):
            admin_update_order(
                actor=self.admin,
                order_id=self.order.id,
                items=[{"product_id": self.jacket.id, "quantity": 1}],
            )

        jacket = self._product(self.jacket)
        self.assertEqual(jacket.stock, 5)
        self.assertEqual(jacket.sales, 0)

    def test_held_quantity_counts_as_available(self):
        # stock 3 on hand + 2 held by the order
        admin_update_order(
            actor=self.admin,
            order_id=self.order.id,
            items=[{"product_id": self.jacket.id, "quantity": 5}],
        )

        self.assertEqual(self._product(self.jacket).stock, 0)

    def test_insufficient_stock_changes_nothing(self):
        with self.assertRaises(InsufficientStockError) as ctx:
            admin_update_order(
                actor=self.admin,
                order_id=self.order.id,
                items=[{"product_id": self.jacket.id, "quantity": 6}],
            )

        self.assertEqual(ctx.exception.available, 5)
        self.assertEqual(self._product(self.jacket).stock, 3)
        self.assertEqual(self.order.items.get().quantity, 2)

    def test_unknown_product(self):
        with self.assertRaises(ProductNotFoundError):
            admin_update_order(
                actor=self.admin,
                order_id=self.order.id,
                items=[{"product_id": "7c9e6679-7425-40de-944b-e07fc1f90ae7", "quantity": 1}],
            )

    def test_address_is_merged_and_status_forced(self):
        self._force_status(Order.STATUS_SHIPPED)

        order = admin_update_order(
            actor=self.admin,
            order_id=self.order.id,
            shipping_address={"city": "Madurai"},
            status=Order.STATUS_PENDING,
        )

        self.assertEqual(order.shipping_city, "Madurai")
        self.assertEqual(order.shipping_street, "4 Lake View")
        self.assertEqual(order.status, Order.STATUS_PENDING)

    def test_admin_only(self):
        with self.assertRaises(UnauthorizedError):
            admin_update_order(actor=self.owner, order_id=self.order.id, status=Order.STATUS_SHIPPED)
