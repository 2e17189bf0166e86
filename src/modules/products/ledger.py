"""Stock Ledger: the only writer of ``Product.stock_quantity`` outside admin edits.

Every mutation is a single conditional ``UPDATE`` evaluated by the
database, never a read-modify-write in Python:

    UPDATE products
       SET stock_quantity = stock_quantity - :qty
     WHERE id = :id AND stock_quantity >= :qty

Two purchasers racing for the last unit both issue that statement; the
database serialises them on the row and the loser matches zero rows.
That is what keeps stock non-negative, not the advisory check the cart
performs when items are added.
"""

from __future__ import annotations

from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db.models import F
from django.utils import timezone

from modules.products.exceptions import InsufficientStock, ProductNotFound
from modules.products.models import Product
from modules.products.repositories.interfaces import IStockLedger

logger = structlog.get_logger(__name__)


class StockLedger(IStockLedger):
    """Django ORM implementation of ``IStockLedger``."""

    def get_stock(self, product_id: UUID | str) -> int:
        try:
            stock = (
                Product.objects.filter(id=product_id)
                .values_list("stock_quantity", flat=True)
                .first()
            )
        except (ValueError, ValidationError):
            stock = None
        if stock is None:
            raise ProductNotFound(f"Product {product_id} not found.")
        return stock

    def decrement(self, product_id: UUID | str, quantity: int) -> int:
        """Atomically take *quantity* units; returns the remaining stock.

        Raises:
            ValueError: quantity is not positive.
            ProductNotFound: the product does not exist.
            InsufficientStock: fewer than *quantity* units available
                (stock is left unchanged).
        """
        _require_positive(quantity)
        updated = Product.objects.filter(
            id=product_id, stock_quantity__gte=quantity
        ).update(
            stock_quantity=F("stock_quantity") - quantity,
            updated_at=timezone.now(),
        )
        if not updated:
            available = self.get_stock(product_id)
            logger.warning(
                "stock.decrement_rejected",
                product_id=str(product_id),
                requested=quantity,
                available=available,
            )
            raise InsufficientStock(product_id, quantity, available)

        remaining = self.get_stock(product_id)
        logger.info(
            "stock.decremented",
            product_id=str(product_id),
            quantity=quantity,
            remaining=remaining,
        )
        return remaining

    def restore(self, product_id: UUID | str, quantity: int) -> int:
        """Atomically credit *quantity* units back; returns the new stock.

        Idempotency is the caller's responsibility.

        Raises:
            ValueError: quantity is not positive.
            ProductNotFound: the product does not exist.
        """
        _require_positive(quantity)
        updated = Product.objects.filter(id=product_id).update(
            stock_quantity=F("stock_quantity") + quantity,
            updated_at=timezone.now(),
        )
        if not updated:
            raise ProductNotFound(f"Product {product_id} not found.")

        restored = self.get_stock(product_id)
        logger.info(
            "stock.restored",
            product_id=str(product_id),
            quantity=quantity,
            restored_stock=restored,
        )
        return restored


def _require_positive(quantity: int) -> None:
    if quantity < 1:
        raise ValueError("Quantity must be at least 1.")
