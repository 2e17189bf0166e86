"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.  The
repository does not open its own transactions for the aggregate: the
placement and lifecycle services own the unit of work.

Concurrency control on status updates uses ``select_for_update()``.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.db.models import QuerySet

from modules.orders.constants import OrderStatus
from modules.orders.exceptions import OrderItemsPersistFailure
from modules.orders.models import Order, OrderItem, OrderStatusHistory
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

_RELATIONS = ("items__product", "status_history")


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    def create_header(
        self,
        user_id: str,
        total: Decimal,
        address_id: Optional[UUID] = None,
        idempotency_key: Optional[str] = None,
    ) -> Order:
        order = Order(
            user_id=user_id,
            address_id=address_id,
            status=OrderStatus.PENDING,
            total=total,
            stock_restored=False,
            idempotency_key=idempotency_key,
        )
        order.save()
        logger.info("order.header_created", order_id=str(order.id), user_id=user_id)
        return order

    def create_items(self, order: Order, items: List[Dict[str, Any]]) -> List[OrderItem]:
        """Insert every line for *order*.

        Runs in a savepoint so a failed insert can be reported as
        ``OrderItemsPersistFailure`` without poisoning the outer
        transaction before the caller decides to roll it back.

        Raises:
            OrderItemsPersistFailure: any line could not be written.
        """
        created: List[OrderItem] = []
        try:
            with transaction.atomic():
                for data in items:
                    item = OrderItem(
                        order=order,
                        product_id=data["product_id"],
                        quantity=data["quantity"],
                        price=data["price"],
                    )
                    item.save()
                    created.append(item)
        except DatabaseError as exc:
            logger.error(
                "order.items_persist_failed",
                order_id=str(order.id),
                error=str(exc),
            )
            raise OrderItemsPersistFailure(
                f"Order {order.id} was created but its items could not be saved."
            ) from exc

        logger.info("order.items_created", order_id=str(order.id), item_count=len(created))
        return created

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with eager-loaded relations.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return (
                Order.objects.select_related("address")
                .prefetch_related(*_RELATIONS)
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order with a row-level lock (SELECT FOR UPDATE).

        Must be called inside a transaction.  Returns ``None`` for
        non-existent or invalid IDs.
        """
        try:
            return Order.objects.select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def queryset(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet[Order]:
        """Lazy order query with eager-loaded relations.

        Supported filter keys include ``status``, ``user_id`` and
        ``created_at__range``.
        """
        queryset = Order.objects.select_related("address").prefetch_related(*_RELATIONS)
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        return list(self.queryset(filters))

    def get_by_idempotency_key(self, key: str) -> Optional[Order]:
        return (
            Order.objects.select_related("address")
            .prefetch_related(*_RELATIONS)
            .filter(idempotency_key=key)
            .first()
        )

    # ------------------------------------------------------------------
    # Restoration ledger
    # ------------------------------------------------------------------

    def unrestored_items(self, order: Order) -> List[OrderItem]:
        # product order keeps lock acquisition stable across concurrent cancels
        return list(
            OrderItem.objects.filter(order=order, restored_at__isnull=True).order_by(
                "product_id"
            )
        )

    def mark_item_restored(self, item: OrderItem, when: datetime) -> None:
        item.restored_at = when
        item.save(update_fields=["restored_at"])

    # ------------------------------------------------------------------
    # Save / Delete (IRepository contract)
    # ------------------------------------------------------------------

    def save(self, entity: Order) -> Order:
        entity.save()
        logger.info("order.saved", order_id=str(entity.id), status=entity.status)
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        """Hard-delete an order; items and history cascade."""
        order = self.get_by_id(id)
        if not order:
            return False
        order.delete()
        logger.info("order.deleted", order_id=str(id))
        return True

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def add_history(
        self,
        order_id: UUID,
        new_status: str,
        old_status: Optional[str] = None,
        actor_id: str = "",
        notes: str = "",
        is_override: bool = False,
    ) -> OrderStatusHistory:
        history = OrderStatusHistory.objects.create(
            order_id=order_id,
            old_status=old_status,
            new_status=new_status,
            actor_id=actor_id,
            notes=notes,
            is_override=is_override,
        )
        logger.info(
            "order.history_added",
            order_id=str(order_id),
            old_status=old_status,
            new_status=new_status,
            is_override=is_override,
        )
        return history
