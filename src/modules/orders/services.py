"""Order service layer: placement (checkout) and order queries.

``place_order`` is the Order Placement Orchestrator.  Header, line items
and stock decrements run in one ``transaction.atomic`` block, so any
failure (items that cannot be written, a product that sold out since it
was added to the cart) leaves no order behind and no stock taken.

Preconditions, checked in order, first failure wins:
1. an authenticated caller (``Unauthenticated``)
2. a resolved address (``NoAddress``)
3. a non-empty cart (``EmptyCart``)

Status transitions after placement live in ``modules.orders.lifecycle``.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, Any, Dict, List, Optional
from uuid import UUID

import structlog
from django.db import transaction

from modules.core.identity import Role
from modules.core.permissions import requires
from modules.orders.constants import OrderStatus
from modules.orders.dtos import OrderLineDTO
from modules.orders.events import OrderPlaced
from modules.orders.exceptions import (
    EmptyCart,
    NoAddress,
    OrderNotFound,
    Unauthenticated,
)
from shared.infrastructure.bus import event_bus

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.cart.reconciler import CartReconciler
    from modules.core.identity import CallerIdentity
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.products.repositories.interfaces import IStockLedger

logger = structlog.get_logger(__name__)

CENT = Decimal("0.01")


class OrderService:
    """Application service for order placement and order reads.

    Receives repositories via constructor injection (DIP).
    """

    def __init__(self, order_repository: IOrderRepository, ledger: IStockLedger) -> None:
        self._order_repo = order_repository
        self._ledger = ledger

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def place_order(
        self,
        identity: Optional[CallerIdentity],
        cart: CartReconciler,
        address_id: Optional[UUID],
        idempotency_key: Optional[str] = None,
    ) -> Order:
        """Turn the caller's cart into a ``pending`` order.

        Steps:
        1. Return the existing order when *idempotency_key* was already used
           by this caller.
        2. Snapshot cart lines and compute the total.
        3. Insert the order header, then its items.
        4. Decrement stock per line, in product-id order.
        5. Record history, queue ``OrderPlaced`` for after commit and
           clear the cart.

        Raises:
            Unauthenticated: no caller identity.
            NoAddress: no address was resolved.
            EmptyCart: the cart has no lines.
            OrderItemsPersistFailure: the items could not be written.
            InsufficientStock: a product no longer has enough stock.
            ProductNotFound: a product was deleted since it was carted.
        """
        if identity is None:
            raise Unauthenticated("Sign in to place an order.")
        if address_id is None:
            raise NoAddress("Add a delivery address before checking out.")
        if cart.is_empty:
            raise EmptyCart("Your cart is empty.")

        log = logger.bind(user_id=identity.id)

        scoped_key = f"{identity.id}:{idempotency_key}" if idempotency_key else None
        if scoped_key:
            existing = self._order_repo.get_by_idempotency_key(scoped_key)
            if existing:
                log.info("order.idempotency_hit", order_id=str(existing.id))
                cart.clear()
                return existing

        lines = [OrderLineDTO.from_cart_item(item) for item in cart.items()]
        total = sum((line.subtotal for line in lines), Decimal("0")).quantize(
            CENT, rounding=ROUND_HALF_UP
        )
        log.info("order.placement_started", line_count=len(lines), total=str(total))

        order = self._order_repo.create_header(
            user_id=identity.id,
            total=total,
            address_id=address_id,
            idempotency_key=scoped_key,
        )
        log = log.bind(order_id=str(order.id))

        self._order_repo.create_items(
            order,
            [
                {"product_id": line.product_id, "quantity": line.quantity, "price": line.price}
                for line in lines
            ],
        )

        for line in sorted(lines, key=lambda l: str(l.product_id)):
            self._ledger.decrement(line.product_id, line.quantity)

        self._order_repo.add_history(
            order_id=order.id,
            new_status=OrderStatus.PENDING,
            actor_id=identity.id,
            notes="Order placed",
        )

        order.add_domain_event(
            OrderPlaced(
                aggregate_id=order.id,
                recipient_id=identity.id,
                payload={"total": str(total), "item_count": len(lines)},
            )
        )
        event_bus.publish_on_commit(order.pull_domain_events())

        cart.clear()
        log.info("order.placed", total=str(total))
        return self._order_repo.get_by_id(str(order.id)) or order

    @requires(Role.ADMIN)
    @transaction.atomic
    def delete_order(self, order_id: str, *, actor: CallerIdentity) -> None:
        """Hard-delete an order with its items and history.

        Stock is not touched; cancel first to credit it back.

        Raises:
            OrderNotFound: order does not exist.
        """
        if not self._order_repo.delete(order_id):
            raise OrderNotFound(f"Order {order_id} not found.")
        logger.info("order.deleted_by_admin", order_id=str(order_id), actor_id=actor.id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: str, identity: CallerIdentity) -> Order:
        """Retrieve an order visible to *identity*.

        Raises:
            OrderNotFound: missing, or owned by someone else and the
                caller is not an admin.
        """
        order = self._order_repo.get_by_id(order_id)
        if not order or not (identity.is_admin or order.user_id == identity.id):
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def list_orders(
        self, identity: CallerIdentity, filters: Optional[Dict[str, Any]] = None
    ) -> List[Order]:
        """Orders visible to *identity*: all for admins, own otherwise."""
        filters = dict(filters or {})
        if not identity.is_admin:
            filters["user_id"] = identity.id
        return self._order_repo.list(filters)

    def visible_orders(self, identity: CallerIdentity) -> QuerySet[Order]:
        """Lazy variant of ``list_orders`` for filtered, paginated endpoints."""
        if identity.is_admin:
            return self._order_repo.queryset()
        return self._order_repo.queryset({"user_id": identity.id})
