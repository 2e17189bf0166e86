"""Event handlers for Orders domain events.

Each handler turns an event into a user-facing notification.  They run
after the transaction commits (see ``event_bus.publish_on_commit``).
"""

from __future__ import annotations

import structlog

from modules.notifications.sinks import Severity, get_notification_sink
from modules.orders.events import (
    OrderCancelled,
    OrderPlaced,
    OrderStatusChanged,
    StockRestored,
)
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class OrderPlacedHandler(IEventHandler[OrderPlaced]):
    def handle(self, event: OrderPlaced) -> None:
        logger.info("order.event.placed", order_id=str(event.aggregate_id))
        get_notification_sink().notify(
            "Order placed successfully!", Severity.SUCCESS, event.recipient_id
        )


class OrderCancelledHandler(IEventHandler[OrderCancelled]):
    def handle(self, event: OrderCancelled) -> None:
        logger.info("order.event.cancelled", order_id=str(event.aggregate_id))
        get_notification_sink().notify(
            "Your order has been cancelled.", Severity.INFO, event.recipient_id
        )


class OrderStatusChangedHandler(IEventHandler[OrderStatusChanged]):
    def handle(self, event: OrderStatusChanged) -> None:
        new_status = event.payload.get("new_status", "")
        logger.info(
            "order.event.status_changed",
            order_id=str(event.aggregate_id),
            old_status=event.payload.get("old_status"),
            new_status=new_status,
        )
        get_notification_sink().notify(
            f"Your order is now {new_status}.", Severity.INFO, event.recipient_id
        )


class StockRestoredHandler(IEventHandler[StockRestored]):
    def handle(self, event: StockRestored) -> None:
        logger.info(
            "order.event.stock_restored",
            order_id=str(event.aggregate_id),
            items=event.payload.get("items", 0),
        )


order_placed_handler = OrderPlacedHandler()
order_cancelled_handler = OrderCancelledHandler()
order_status_changed_handler = OrderStatusChangedHandler()
stock_restored_handler = StockRestoredHandler()
