from __future__ import annotations

import random
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from modules.addresses.models import Address
from modules.products.models import Product


class Command(BaseCommand):
    help = "Seed database with development data (users, catalog, addresses)."

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        users = self._seed_users()
        products = self._seed_products()
        addresses = self._seed_addresses(users)

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={len(users)}, "
                f"products={len(products)}, "
                f"addresses={addresses}"
            )
        )

    def _seed_users(self) -> list:
        User = get_user_model()
        users = []
        for username, password, is_staff in (
            ("admin", "admin123", True),
            ("shopper", "shopper123", False),
        ):
            user = User.objects.filter(username=username).first()
            if user is None:
                user = User.objects.create_user(username, password=password, is_staff=is_staff)
            users.append(user)
        return users

    def _seed_products(self) -> list[Product]:
        self.stdout.write("Creating products...")
        catalog = [
            ("Cotton Kurta", "Men", Decimal("899.00")),
            ("Linen Shirt", "Men", Decimal("1199.00")),
            ("Denim Jacket", "Men", Decimal("2499.00")),
            ("Silk Saree", "Women", Decimal("3999.00")),
            ("Printed Kurti", "Women", Decimal("749.00")),
            ("Palazzo Pants", "Women", Decimal("649.00")),
            ("Kids Hoodie", "Kids", Decimal("599.00")),
            ("Kids Joggers", "Kids", Decimal("449.00")),
            ("Canvas Tote", "Accessories", Decimal("349.00")),
            ("Leather Belt", "Accessories", Decimal("499.00")),
        ]
        products: list[Product] = []
        for name, category, price in catalog:
            product, _ = Product.objects.get_or_create(
                name=name,
                defaults={
                    "category": category,
                    "description": f"{name} from the {category.lower()} collection.",
                    "price": price,
                    # a few low-stock items exercise the admin warning
                    "stock_quantity": random.choice([0, 3, 12, 25, 40]),
                    "rating": Decimal(str(round(random.uniform(3.0, 5.0), 1))),
                },
            )
            products.append(product)
        self.stdout.write(self.style.SUCCESS("Creating products... Done!"))
        return products

    def _seed_addresses(self, users) -> int:
        created = 0
        for user in users:
            _, was_created = Address.objects.get_or_create(
                user_id=str(user.pk),
                is_default=True,
                defaults={
                    "full_name": user.get_username().title(),
                    "phone": "9876543210",
                    "pincode": "560001",
                    "address_line": "12 MG Road",
                    "city": "Bengaluru",
                    "state": "Karnataka",
                },
            )
            created += int(was_created)
        return created
