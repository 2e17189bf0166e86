"""Order domain constants.

Status choices and the transition table of the order state machine.
Progression is linear (pending -> packed -> shipped -> delivered) and an
order can be cancelled from any non-terminal state.
"""

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PACKED = "packed", "Packed"
    SHIPPED = "shipped", "Shipped"
    DELIVERED = "delivered", "Delivered"
    CANCELLED = "cancelled", "Cancelled"


VALID_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.PENDING: {OrderStatus.PACKED, OrderStatus.CANCELLED},
    OrderStatus.PACKED: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}

TERMINAL_STATES: set[str] = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}

# Statuses in which the order owner (not only an admin) may cancel.
CUSTOMER_CANCELLABLE_STATES: set[str] = {OrderStatus.PENDING}
