"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.  DTOs are
immutable (``frozen=True``).

- ``OrderLineDTO``: one cart line frozen at checkout time.
- ``StatusChangeDTO``: input for admin status changes.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

from modules.orders.constants import OrderStatus

if TYPE_CHECKING:
    from modules.cart.reconciler import CartItem


class OrderLineDTO(BaseModel):
    """Price and quantity snapshot of a cart line.

    The price is taken from the cart, not re-read from the catalog.
    """

    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: int
    price: Decimal

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v

    @field_validator("price")
    @classmethod
    def price_must_not_be_negative(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("Price must not be negative.")
        return v

    @property
    def subtotal(self) -> Decimal:
        return self.price * self.quantity

    @classmethod
    def from_cart_item(cls, item: CartItem) -> OrderLineDTO:
        return cls(product_id=item.product_id, quantity=item.quantity, price=item.price)


class StatusChangeDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: OrderStatus
    notes: str = ""

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v):
        return v.strip().lower() if isinstance(v, str) else v
