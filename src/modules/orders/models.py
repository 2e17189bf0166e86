"""Order, OrderItem, and OrderStatusHistory models.

Rules carried by the schema:
- Each status change appends an ``OrderStatusHistory`` row.
- ``OrderItem`` snapshots the cart price at checkout (``price``) and is
  never edited afterwards; ``subtotal`` is ``quantity * price``.
- ``Order.total`` equals the sum of its item subtotals.
- ``OrderItem.restored_at`` marks lines whose stock was credited back
  after cancellation; ``Order.stock_restored`` is set once every line is.
- Idempotency via the nullable unique ``idempotency_key``.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel
from modules.orders.constants import (
    CUSTOMER_CANCELLABLE_STATES,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    OrderStatus,
)
from shared.domain.events import DomainEventMixin


class Order(DomainEventMixin, BaseModel):
    """Order aggregate root.

    ``user_id`` is the caller identity issued by the auth provider.  The
    address is kept as a reference; deleting the address later leaves
    the order in place with ``address = NULL``.
    """

    user_id: models.CharField = models.CharField(max_length=255, db_index=True)
    address: models.ForeignKey = models.ForeignKey(
        "addresses.Address",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders",
    )
    status: models.CharField = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
    )
    total: models.DecimalField = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    stock_restored: models.BooleanField = models.BooleanField(default=False)
    idempotency_key: models.CharField = models.CharField(
        max_length=255,
        unique=True,
        null=True,
        blank=True,
    )

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
        ]

    # ------------------------------------------------------------------
    # State Machine helpers
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATES

    @property
    def is_customer_cancellable(self) -> bool:
        return self.status in CUSTOMER_CANCELLABLE_STATES

    def can_transition_to(self, new_status: str) -> bool:
        """Check whether transitioning to *new_status* is valid."""
        return new_status in VALID_TRANSITIONS.get(self.status, set())

    def __str__(self) -> str:
        return f"Order {self.id} ({self.status})"


class OrderItem(BaseModel):
    """Line item linking an Order to a Product.

    ``price`` is the snapshot taken from the cart at checkout, not
    re-read from the catalog.
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    product: models.ForeignKey = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        related_name="order_items",
    )
    quantity: models.PositiveIntegerField = models.PositiveIntegerField(
        validators=[MinValueValidator(1)],
    )
    price: models.DecimalField = models.DecimalField(max_digits=10, decimal_places=2)
    subtotal: models.DecimalField = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        editable=False,
    )
    restored_at: models.DateTimeField = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "order_items"
        ordering = ["created_at", "id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.quantity is not None and self.quantity < 1:
            raise ValidationError({"quantity": "Quantity must be at least 1."})

    def save(self, *args: Any, **kwargs: Any) -> None:
        self.subtotal = self.quantity * self.price
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.product_id} x{self.quantity} ({self.subtotal})"


class OrderStatusHistory(BaseModel):
    """Append-only audit trail for order status transitions.

    ``actor_id`` is empty when the system made the change.
    ``is_override`` marks admin overrides that bypassed the transition
    table.
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="status_history",
    )
    old_status: models.CharField = models.CharField(  # noqa: DJ01
        max_length=20,
        choices=OrderStatus.choices,
        null=True,
        blank=True,
    )
    new_status: models.CharField = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
    )
    actor_id: models.CharField = models.CharField(max_length=255, blank=True, default="")
    is_override: models.BooleanField = models.BooleanField(default=False)
    notes: models.TextField = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_status_history"
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(
                fields=["order", "-created_at"],
                name="osh_order_created_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.order_id} : {self.old_status} -> {self.new_status}"
