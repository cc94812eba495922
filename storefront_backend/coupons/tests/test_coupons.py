# coupons/tests/test_coupons.py

from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIClient

from coupons.models import Coupon
from coupons.services.coupon_evaluator import (
    BelowMinimumOrderError,
    CouponExpiredError,
    InvalidCouponError,
    NotEligibleError,
    NotFirstOrderError,
    PerUserLimitReachedError,
    UsageLimitReachedError,
    validate_coupon,
)
from coupons.services.coupon_usage import consume_coupon, restore_coupon
from orders.models import Order
from orders.services.order_assembly import create_order
from orders.services.order_transitions import cancel_order
from products.models import Product

User = get_user_model()

ADDRESS = {
    "street": "12 FC Road",
    "city": "Pune",
    "state": "MH",
    "postal_code": "411004",
    "phone": "9822222222",
}


def make_coupon(code="SAVE10", **overrides):
    data = {
        "code": code,
        "discount_type": Coupon.DiscountType.PERCENTAGE,
        "discount_value": Decimal("10.00"),
        "min_order_value": Decimal("0.00"),
        "usage_limit": None,
        "per_user_limit": 1,
    }
    data.update(overrides)
    return Coupon.objects.create(**data)


def make_order(user, *, coupon_code="", status=Order.STATUS_PENDING):
    return Order.objects.create(
        user=user,
        status=status,
        total_price=Decimal("500.00"),
        coupon_code=coupon_code,
        shipping_street="1 Main Road",
        shipping_city="Pune",
        shipping_state="MH",
        shipping_postal_code="411001",
        shipping_country="India",
        shipping_phone="9999999999",
    )


class CouponEvaluatorTests(TestCase):
    """
    GUARANTEES:
    - discount never exceeds the merchandise value
    - shipping is never discounted
    - checks run in a fixed order; the first failure wins
    """

    def setUp(self):
        self.user = User.objects.create_user(email="buyer@example.com", password="pass")

    def test_percentage_discount_splits_shipping(self):
        make_coupon()

        result = validate_coupon(
            "save10",
            user=self.user,
            cart_value=Decimal("1000.00"),
            order_total=Decimal("1100.00"),
        )

        self.assertEqual(result.discount_amount, Decimal("100.00"))
        self.assertEqual(result.shipping_cost, Decimal("100.00"))
        self.assertEqual(result.final_total, Decimal("1000.00"))

    def test_fixed_discount_is_capped_at_cart_value(self):
        make_coupon("FLAT500", discount_type=Coupon.DiscountType.FIXED, discount_value=Decimal("500.00"))

        result = validate_coupon(
            "FLAT500",
            user=self.user,
            cart_value=Decimal("300.00"),
            order_total=Decimal("400.00"),
        )

        self.assertEqual(result.discount_amount, Decimal("300.00"))
        self.assertEqual(result.final_total, Decimal("100.00"))

    def test_percentage_discount_rounds_half_up(self):
        make_coupon("ODD", discount_value=Decimal("15.00"))

        result = validate_coupon(
            "ODD",
            user=self.user,
            cart_value=Decimal("33.33"),
            order_total=Decimal("33.33"),
        )

        # 33.33 * 0.15 = 4.9995
        self.assertEqual(result.discount_amount, Decimal("5.00"))

    def test_unknown_or_inactive_code_is_invalid(self):
        make_coupon("OFF", is_active=False)

        with self.assertRaises(InvalidCouponError):
            validate_coupon("NOPE", user=self.user, cart_value=100, order_total=100)
        with self.assertRaises(InvalidCouponError):
            validate_coupon("OFF", user=self.user, cart_value=100, order_total=100)

    def test_expiry_is_checked_before_usage_limit(self):
        make_coupon(
            expiry_date=timezone.now() - timedelta(days=1),
            usage_limit=1,
            usage_count=1,
        )

        with self.assertRaises(CouponExpiredError):
            validate_coupon("SAVE10", user=self.user, cart_value=100, order_total=100)

    def test_usage_limit_reached(self):
        make_coupon(usage_limit=2, usage_count=2)

        with self.assertRaises(UsageLimitReachedError):
            validate_coupon("SAVE10", user=self.user, cart_value=100, order_total=100)

    def test_minimum_order_uses_cart_value_not_shipping(self):
        make_coupon(min_order_value=Decimal("500.00"))

        with self.assertRaises(BelowMinimumOrderError):
            validate_coupon(
                "SAVE10",
                user=self.user,
                cart_value=Decimal("450.00"),
                order_total=Decimal("550.00"),
            )

    def test_whitelist_excludes_other_users(self):
        coupon = make_coupon()
        other = User.objects.create_user(email="vip@example.com", password="pass")
        coupon.allowed_users.add(other)

        with self.assertRaises(NotEligibleError):
            validate_coupon("SAVE10", user=self.user, cart_value=100, order_total=100)

        result = validate_coupon("SAVE10", user=other, cart_value=100, order_total=100)
        self.assertEqual(result.discount_amount, Decimal("10.00"))

    def test_first_order_only(self):
        make_coupon(is_first_order_only=True)
        make_order(self.user)

        with self.assertRaises(NotFirstOrderError):
            validate_coupon("SAVE10", user=self.user, cart_value=100, order_total=100)

    def test_per_user_limit_counts_orders_with_the_code(self):
        make_coupon()
        make_order(self.user, coupon_code="SAVE10")

        with self.assertRaises(PerUserLimitReachedError):
            validate_coupon("SAVE10", user=self.user, cart_value=100, order_total=100)

    def test_cancelled_order_gives_the_per_user_use_back(self):
        make_coupon()
        make_order(self.user, coupon_code="SAVE10", status=Order.STATUS_CANCELLED)

        result = validate_coupon("SAVE10", user=self.user, cart_value=100, order_total=100)
        self.assertEqual(result.coupon.code, "SAVE10")

    def test_coupon_reusable_after_cancelling_the_order_that_used_it(self):
        coupon = make_coupon(usage_limit=1)
        product = Product.objects.create(name="Notebook", sku="NB-1", price=Decimal("200.00"), stock=5)
        items = [{"product_id": product.id, "quantity": 1}]

        first = create_order(user=self.user, items=items, shipping_address=ADDRESS, coupon_code="SAVE10")
        cancel_order(actor=self.user, order_id=first.id)

        second = create_order(user=self.user, items=items, shipping_address=ADDRESS, coupon_code="SAVE10")

        self.assertEqual(second.coupon_code, "SAVE10")
        coupon.refresh_from_db()
        self.assertEqual(coupon.usage_count, 1)

    def test_per_user_limit_zero_is_unlimited(self):
        make_coupon(per_user_limit=0)
        make_order(self.user, coupon_code="SAVE10")
        make_order(self.user, coupon_code="SAVE10")

        result = validate_coupon("SAVE10", user=self.user, cart_value=100, order_total=100)
        self.assertEqual(result.discount_amount, Decimal("10.00"))


class CouponUsageTests(TestCase):
    def test_consume_stops_at_usage_limit(self):
        coupon = make_coupon(usage_limit=2)

        consume_coupon(coupon)
        consume_coupon(coupon)
        with self.assertRaises(UsageLimitReachedError):
            consume_coupon(coupon)

        coupon.refresh_from_db()
        self.assertEqual(coupon.usage_count, 2)

    def test_unlimited_coupon_keeps_counting(self):
        coupon = make_coupon(usage_limit=0)

        for _ in range(3):
            consume_coupon(coupon)

        coupon.refresh_from_db()
        self.assertEqual(coupon.usage_count, 3)

    def test_restore_never_goes_below_zero(self):
        coupon = make_coupon(usage_count=1)

        self.assertTrue(restore_coupon("save10"))
        self.assertFalse(restore_coupon("SAVE10"))

        coupon.refresh_from_db()
        self.assertEqual(coupon.usage_count, 0)


class CouponAPITests(TestCase):
    def setUp(self):
        self.customer = User.objects.create_user(email="c@example.com", password="pass")
        self.admin = User.objects.create_user(email="a@example.com", password="pass", role=User.ROLE_ADMIN)
        self.client = APIClient()

    def test_validate_previews_without_consuming(self):
        coupon = make_coupon()
        self.client.force_authenticate(user=self.customer)

        response = self.client.post(
            "/api/coupons/validate/",
            {"code": "save10", "cart_value": "1000.00", "order_total": "1100.00"},
            format="json",
        )

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data["valid"])
        self.assertEqual(response.data["discount_amount"], "100.00")
        self.assertEqual(response.data["final_total"], "1000.00")

        coupon.refresh_from_db()
        self.assertEqual(coupon.usage_count, 0)

    def test_validate_failure_returns_error_envelope(self):
        make_coupon(expiry_date=timezone.now() - timedelta(hours=1))
        self.client.force_authenticate(user=self.customer)

        response = self.client.post(
            "/api/coupons/validate/",
            {"code": "SAVE10", "order_total": "200.00"},
            format="json",
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["error"]["code"], "COUPON_EXPIRED")

    def test_customer_cannot_manage_coupons(self):
        self.client.force_authenticate(user=self.customer)

        self.assertEqual(self.client.get("/api/coupons/").status_code, 403)
        response = self.client.post(
            "/api/coupons/",
            {"code": "X", "discount_type": "fixed", "discount_value": "10.00"},
            format="json",
        )
        self.assertEqual(response.status_code, 403)

    def test_admin_creates_coupon_with_normalized_code(self):
        self.client.force_authenticate(user=self.admin)

        response = self.client.post(
            "/api/coupons/",
            {"code": " welcome ", "discount_type": "percentage", "discount_value": "20.00"},
            format="json",
        )

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["code"], "WELCOME")
        self.assertEqual(response.data["usage_count"], 0)

    def test_admin_duplicate_code_rejected(self):
        make_coupon()
        self.client.force_authenticate(user=self.admin)

        response = self.client.post(
            "/api/coupons/",
            {"code": "save10", "discount_type": "fixed", "discount_value": "50.00"},
            format="json",
        )

        self.assertEqual(response.status_code, 400)
        self.assertIn("code", response.data)

    def test_percentage_over_hundred_rejected(self):
        self.client.force_authenticate(user=self.admin)

        response = self.client.post(
            "/api/coupons/",
            {"code": "TOOMUCH", "discount_type": "percentage", "discount_value": "150.00"},
            format="json",
        )

        self.assertEqual(response.status_code, 400)
        self.assertIn("discount_value", response.data)
