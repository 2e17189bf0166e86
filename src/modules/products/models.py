"""Product catalog model.

``stock_quantity`` is the single source of truth for sellable inventory.
It is only mutated by admin catalog edits and by ``StockLedger``
(decrement on checkout, increment on cancellation).  The check constraint
backs the application rule at the database level: stock never goes
negative, whatever path the write takes.
"""

from __future__ import annotations

from decimal import Decimal

import structlog
from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from modules.core.models import BaseModel
from modules.products.constants import LOW_STOCK_THRESHOLD

logger = structlog.get_logger(__name__)


class Product(BaseModel):
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    category = models.CharField(max_length=100, blank=True, default="")
    image_url = models.URLField(max_length=500, blank=True, default="")
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    stock_quantity = models.PositiveIntegerField(default=0)
    rating = models.DecimalField(
        max_digits=2,
        decimal_places=1,
        default=Decimal("0.0"),
        validators=[MinValueValidator(0), MaxValueValidator(5)],
    )

    class Meta:
        db_table = "products"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["category"], name="products_category_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(price__gt=0),
                name="products_price_positive",
            ),
            models.CheckConstraint(
                condition=models.Q(stock_quantity__gte=0),
                name="products_stock_non_negative",
            ),
        ]

    @property
    def is_in_stock(self) -> bool:
        return self.stock_quantity > 0

    @property
    def is_low_stock(self) -> bool:
        return self.stock_quantity <= LOW_STOCK_THRESHOLD

    def clean(self) -> None:
        super().clean()
        if self.price is not None and self.price <= 0:
            raise ValidationError({"price": "Price must be greater than zero."})
        if self.stock_quantity is not None and self.stock_quantity < 0:
            raise ValidationError(
                {"stock_quantity": "Stock quantity cannot be negative."}
            )

    def save(self, *args, **kwargs) -> None:
        is_new = self._state.adding
        super().save(*args, **kwargs)
        if is_new:
            logger.info(
                "product_created",
                product_id=str(self.id),
                name=self.name,
                stock_quantity=self.stock_quantity,
            )

    def __str__(self) -> str:
        return self.name
