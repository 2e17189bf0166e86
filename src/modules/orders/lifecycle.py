"""Order State Machine.

Allowed progression is ``pending -> packed -> shipped -> delivered``;
``cancelled`` is reachable from every non-terminal status.  ``delivered``
and ``cancelled`` are terminal.

Every mutation locks the order row (``SELECT FOR UPDATE``), validates the
transition, writes the new status and its history row, and only then
performs side effects (stock restoration, events).

Stock restoration on cancellation is at-most-once per line item: each
``OrderItem`` is stamped with ``restored_at`` in the same transaction as
its ledger credit, and ``Order.stock_restored`` is set when no unstamped
line remains.  A repeated cancel finds nothing left to restore.

Capability rules:
- ``advance`` and ``override_status`` are admin-only.
- ``cancel`` is open to the owner while the order is ``pending`` and to
  admins from any non-terminal status.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import structlog
from django.db import transaction
from django.utils import timezone

from modules.core.identity import Role
from modules.core.permissions import requires
from modules.orders.constants import OrderStatus
from modules.orders.events import OrderCancelled, OrderStatusChanged, StockRestored
from modules.orders.exceptions import (
    InvalidOrderStatus,
    OrderNotFound,
    Unauthenticated,
)
from shared.infrastructure.bus import event_bus

if TYPE_CHECKING:
    from modules.core.identity import CallerIdentity
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.products.repositories.interfaces import IStockLedger

logger = structlog.get_logger(__name__)


class OrderLifecycleService:
    def __init__(self, order_repository: IOrderRepository, ledger: IStockLedger) -> None:
        self._order_repo = order_repository
        self._ledger = ledger

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    @requires(Role.ADMIN)
    @transaction.atomic
    def advance(
        self, order_id: str, new_status: str, *, actor: CallerIdentity, notes: str = ""
    ) -> Order:
        """Move an order one step along the linear progression.

        A request for ``cancelled`` is handled by ``cancel``.

        Raises:
            OrderNotFound: order does not exist.
            InvalidOrderStatus: the transition is not allowed.
        """
        if new_status == OrderStatus.CANCELLED:
            return self.cancel(order_id, actor=actor, notes=notes)

        order = self._lock(order_id)
        log = logger.bind(
            order_id=str(order_id), current_status=order.status, new_status=new_status
        )

        if not order.can_transition_to(new_status):
            log.warning("order.invalid_transition")
            raise InvalidOrderStatus(
                f"Cannot transition from {order.status} to {new_status}."
            )

        self._set_status(order, new_status, actor, notes)
        log.info("order.status_updated")
        return self._finish(order)

    @transaction.atomic
    def cancel(
        self, order_id: str, *, actor: Optional[CallerIdentity], notes: str = ""
    ) -> Order:
        """Cancel an order and credit its stock back.

        Cancelling an already-cancelled order changes nothing and returns
        the order; any line left unrestored by an earlier attempt is
        restored then.

        Raises:
            Unauthenticated: no actor.
            OrderNotFound: missing, or not visible to a non-admin actor.
            InvalidOrderStatus: the order is delivered, or a non-admin
                tried to cancel an order that is no longer pending.
        """
        if actor is None:
            raise Unauthenticated("Sign in to cancel an order.")

        order = self._lock(order_id)
        if not actor.is_admin and order.user_id != actor.id:
            raise OrderNotFound(f"Order {order_id} not found.")

        log = logger.bind(order_id=str(order_id), current_status=order.status, actor_id=actor.id)

        if order.status == OrderStatus.CANCELLED:
            log.info("order.cancel_repeated", stock_restored=order.stock_restored)
            if not order.stock_restored:
                self._restore_stock(order)
            return self._finish(order)

        if order.is_terminal:
            log.warning("order.cancel_not_allowed")
            raise InvalidOrderStatus(f"Cannot cancel order in status {order.status}.")
        if not actor.is_admin and not order.is_customer_cancellable:
            log.warning("order.cancel_not_allowed", reason="customer_after_pending")
            raise InvalidOrderStatus(
                f"Order is already {order.status}; contact support to cancel it."
            )

        self._set_status(order, OrderStatus.CANCELLED, actor, notes or "Order cancelled")
        self._restore_stock(order)
        log.info("order.cancelled")
        return self._finish(order)

    @requires(Role.ADMIN)
    @transaction.atomic
    def override_status(
        self, order_id: str, new_status: str, *, actor: CallerIdentity, notes: str = ""
    ) -> Order:
        """Administrative escape hatch: set any status on a non-terminal order.

        The change is recorded with ``is_override=True``.  Overriding to
        ``cancelled`` restores stock exactly like ``cancel``.

        Raises:
            OrderNotFound: order does not exist.
            InvalidOrderStatus: unknown status, unchanged status, or the
                order is already terminal.
        """
        if new_status not in OrderStatus.values:
            raise InvalidOrderStatus(f"Unknown status {new_status}.")

        order = self._lock(order_id)
        log = logger.bind(
            order_id=str(order_id),
            current_status=order.status,
            new_status=new_status,
            actor_id=actor.id,
        )

        if order.is_terminal:
            log.warning("order.override_rejected", reason="terminal")
            raise InvalidOrderStatus(f"Order is {order.status} and can no longer change.")
        if order.status == new_status:
            raise InvalidOrderStatus(f"Order is already {new_status}.")

        self._set_status(order, new_status, actor, notes, is_override=True)
        if new_status == OrderStatus.CANCELLED:
            self._restore_stock(order)
        log.info("order.status_overridden")
        return self._finish(order)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _lock(self, order_id: str) -> Order:
        order = self._order_repo.get_for_update(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def _set_status(
        self,
        order: Order,
        new_status: str,
        actor: CallerIdentity,
        notes: str,
        is_override: bool = False,
    ) -> None:
        old_status = order.status
        order.status = new_status
        self._order_repo.save(order)
        self._order_repo.add_history(
            order_id=order.id,
            new_status=new_status,
            old_status=old_status,
            actor_id=actor.id,
            notes=notes,
            is_override=is_override,
        )

        event_class = OrderCancelled if new_status == OrderStatus.CANCELLED else OrderStatusChanged
        order.add_domain_event(
            event_class(
                aggregate_id=order.id,
                recipient_id=order.user_id,
                payload={"old_status": old_status, "new_status": new_status},
            )
        )

    def _restore_stock(self, order: Order) -> int:
        """Credit back every line not yet restored; returns how many were."""
        if order.stock_restored:
            return 0

        now = timezone.now()
        restored = 0
        for item in self._order_repo.unrestored_items(order):
            self._ledger.restore(item.product_id, item.quantity)
            self._order_repo.mark_item_restored(item, now)
            restored += 1

        order.stock_restored = True
        self._order_repo.save(order)
        order.add_domain_event(
            StockRestored(
                aggregate_id=order.id,
                recipient_id=order.user_id,
                payload={"items": restored},
            )
        )
        logger.info("order.stock_restored", order_id=str(order.id), items=restored)
        return restored

    def _finish(self, order: Order) -> Order:
        event_bus.publish_on_commit(order.pull_domain_events())
        return self._order_repo.get_by_id(str(order.id)) or order
