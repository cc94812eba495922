from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from coupons.models import Coupon
from products.models import Product


PRODUCTS = [
    ("TEE-WHT-M", "Cotton Tee (White, M)", "Apparel", "499.00", 40),
    ("JEANS-32", "Slim Jeans 32", "Apparel", "1499.00", 25),
    ("SNEAK-42", "Canvas Sneakers 42", "Footwear", "1899.00", 15),
    ("CAP-BLK", "Baseball Cap", "Accessories", "299.00", 60),
    ("TOTE-NAT", "Canvas Tote", "Accessories", "349.00", 3),
]

COUPONS = [
    ("SAVE10", Coupon.DiscountType.PERCENTAGE, "10.00", "0.00"),
    ("FLAT200", Coupon.DiscountType.FIXED, "200.00", "1500.00"),
]


class Command(BaseCommand):
    help = "Seed a demo catalog and coupons (idempotent; stock is only set on create)"

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write(self.style.WARNING("Seeding products and coupons..."))

        created_products = 0
        for sku, name, category, price, stock in PRODUCTS:
            _, created = Product.objects.get_or_create(
                sku=sku,
                defaults={
                    "name": name,
                    "category": category,
                    "price": Decimal(price),
                    "stock": stock,
                },
            )
            created_products += int(created)

        created_coupons = 0
        for code, discount_type, value, min_order in COUPONS:
            _, created = Coupon.objects.get_or_create(
                code=code,
                defaults={
                    "discount_type": discount_type,
                    "discount_value": Decimal(value),
                    "min_order_value": Decimal(min_order),
                },
            )
            created_coupons += int(created)

        self.stdout.write(
            self.style.SUCCESS(
                f"Seeded {created_products} products and {created_coupons} coupons."
            )
        )
