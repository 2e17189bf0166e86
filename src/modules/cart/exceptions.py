"""Cart reconciliation exceptions.

Raised when a cart mutation conflicts with live stock.  They are
recoverable: the API answers 409 and the cart is left unchanged.
"""

from __future__ import annotations


class CartError(Exception):
    """Base class for rejected cart mutations."""


class OutOfStock(CartError):
    """The product has no stock left."""


class StockExceeded(CartError):
    """The merged cart quantity would exceed the product's stock."""

    def __init__(self, product_id, stock: int):
        self.product_id = product_id
        self.stock = stock
        super().__init__(f"Only {stock} left in stock.")
