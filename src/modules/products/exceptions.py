"""Catalog and stock-ledger exceptions.

Raised by the Service Layer / ``StockLedger``.  The API layer translates
them into 404 and 409 responses.
"""

from __future__ import annotations


class ProductNotFound(Exception):
    """The requested product does not exist."""


class InsufficientStock(Exception):
    """A decrement asked for more units than are currently available."""

    def __init__(self, product_id, requested: int, available: int | None = None):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        detail = f"Product {product_id}: requested {requested}"
        if available is not None:
            detail += f", available {available}"
        super().__init__(f"{detail}.")


class ProductInUse(Exception):
    """The product is referenced by order items and cannot be deleted."""
