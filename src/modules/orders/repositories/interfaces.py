"""Order repository interface.

Extends ``IRepository[Order]`` with the Order Store operations the
placement and lifecycle services need: header and item creation, locked
reads, history tracking, and idempotency-key look-up.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, List, Optional
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.orders.models import Order, OrderItem, OrderStatusHistory


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The Order aggregate includes OrderItem children and
    OrderStatusHistory records.
    """

    @abstractmethod
    def create_header(
        self,
        user_id: str,
        total: Decimal,
        address_id: Optional[UUID] = None,
        idempotency_key: Optional[str] = None,
    ) -> Order:
        """Insert a ``pending`` order header with ``stock_restored=False``."""

    @abstractmethod
    def create_items(self, order: Order, items: List[Dict[str, Any]]) -> List[OrderItem]:
        """Insert line items (dicts of ``product_id``, ``quantity``, ``price``)."""

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with prefetched items, address and history."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order with a row-level lock."""

    @abstractmethod
    def queryset(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet[Order]:
        """Lazy, filterable order query (used by list endpoints)."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        """List orders with optional filters."""

    @abstractmethod
    def unrestored_items(self, order: Order) -> List[OrderItem]:
        """Items of *order* whose stock has not been credited back yet."""

    @abstractmethod
    def mark_item_restored(self, item: OrderItem, when: datetime) -> None:
        """Stamp *item* as restored."""

    @abstractmethod
    def add_history(
        self,
        order_id: UUID,
        new_status: str,
        old_status: Optional[str] = None,
        actor_id: str = "",
        notes: str = "",
        is_override: bool = False,
    ) -> OrderStatusHistory:
        """Record a status change in the order's audit trail."""

    @abstractmethod
    def get_by_idempotency_key(self, key: str) -> Optional[Order]:
        """Retrieve an order by its idempotency key."""
