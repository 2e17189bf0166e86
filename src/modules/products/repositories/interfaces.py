"""Catalog repository and stock-ledger contracts.

The cart and order services depend only on ``IStockLedger`` for stock
and on ``IProductRepository.get_by_id`` for catalog data.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Sequence
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.products.models import Product


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product catalog."""

    @abstractmethod
    def update_fields(self, entity: Product, fields: Sequence[str]) -> Product:
        """Write only *fields* of *entity*, then reload it from the database."""


class IStockLedger(ABC):
    """Atomic per-product stock primitives."""

    @abstractmethod
    def get_stock(self, product_id: UUID | str) -> int:
        """Current available quantity; raises ``ProductNotFound``."""

    @abstractmethod
    def decrement(self, product_id: UUID | str, quantity: int) -> int:
        """Conditionally reduce stock; raises ``InsufficientStock``."""

    @abstractmethod
    def restore(self, product_id: UUID | str, quantity: int) -> int:
        """Increase stock; the caller guarantees at-most-once."""
