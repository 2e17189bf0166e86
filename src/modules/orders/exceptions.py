"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.
The API layer (Views) catches these and translates them into
appropriate HTTP responses.

``InsufficientStock`` and ``ProductNotFound`` come from the stock ledger
and ``Unauthenticated`` / ``PermissionDenied`` from the capability check;
they are re-exported here because placement and cancellation surface them.
"""

from __future__ import annotations

from modules.core.exceptions import PermissionDenied, Unauthenticated
from modules.products.exceptions import InsufficientStock, ProductNotFound

__all__ = [
    "EmptyCart",
    "InsufficientStock",
    "InvalidOrderStatus",
    "NoAddress",
    "OrderItemsPersistFailure",
    "OrderNotFound",
    "PermissionDenied",
    "ProductNotFound",
    "Unauthenticated",
]


class OrderNotFound(Exception):
    """The requested order does not exist or is not visible to the caller."""


class InvalidOrderStatus(Exception):
    """The requested status transition is not allowed."""


class NoAddress(Exception):
    """Checkout was attempted without a usable delivery address."""


class EmptyCart(Exception):
    """Checkout was attempted with an empty cart."""


class OrderItemsPersistFailure(Exception):
    """Line items could not be written after the order header was created."""
