"""Domain events for the Orders bounded context."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderPlaced(DomainEvent):
    """Raised when checkout creates an order."""


@dataclass(frozen=True)
class OrderCancelled(DomainEvent):
    """Raised when an order moves to ``cancelled``."""


@dataclass(frozen=True)
class OrderStatusChanged(DomainEvent):
    """Raised on every non-cancelling status change."""


@dataclass(frozen=True)
class StockRestored(DomainEvent):
    """Raised when a cancelled order's stock was credited back."""
