"""In-process event bus.

Handlers run synchronously in the publishing thread.  Events are
published only after the business transaction commits, so a failing
handler is logged and skipped: the order it describes already exists
and must not be reported as failed to the caller.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Type

import structlog
from django.db import transaction

from shared.domain.bus import IEventBus, IEventHandler
from shared.domain.events import DomainEvent

logger = structlog.get_logger(__name__)


class InMemoryEventBus(IEventBus):
    def __init__(self) -> None:
        self._handlers: Dict[Type[DomainEvent], List[IEventHandler]] = {}

    def subscribe(self, event_class: Type[DomainEvent], handler: IEventHandler) -> None:
        handlers = self._handlers.setdefault(event_class, [])
        if handler not in handlers:
            handlers.append(handler)

    def publish(self, event: DomainEvent) -> None:
        for handler in self._handlers.get(type(event), []):
            try:
                handler.handle(event)
            except Exception:
                logger.exception(
                    "event_bus.handler_failed",
                    event_name=event.event_name,
                    aggregate_id=str(event.aggregate_id),
                    handler=type(handler).__name__,
                )

    def publish_all(self, events: Iterable[DomainEvent]) -> None:
        for event in events:
            self.publish(event)

    def publish_on_commit(self, events: Iterable[DomainEvent]) -> None:
        """Defer publication until the surrounding transaction commits."""
        pending = list(events)
        if pending:
            transaction.on_commit(lambda: self.publish_all(pending))


event_bus = InMemoryEventBus()
