"""Domain event primitives for the storefront monolith."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict
from uuid import UUID, uuid4


@dataclass(frozen=True)
class DomainEvent:
    """Immutable fact about an aggregate.

    ``recipient_id`` is the identity that should hear about the event
    (usually the order owner); ``payload`` carries event-specific data.
    """

    aggregate_id: UUID
    recipient_id: str = ""
    payload: Dict[str, Any] = field(default_factory=dict)
    event_id: UUID = field(default_factory=uuid4)
    occurred_on: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def event_name(self) -> str:
        return type(self).__name__


class DomainEventMixin:
    """Collects events on an aggregate until the service publishes them."""

    _domain_events: list[DomainEvent]

    def add_domain_event(self, event: DomainEvent) -> None:
        if not hasattr(self, "_domain_events"):
            self._domain_events = []
        self._domain_events.append(event)

    def pull_domain_events(self) -> list[DomainEvent]:
        """Return pending events and forget them."""
        events = list(getattr(self, "_domain_events", []))
        self._domain_events = []
        return events
