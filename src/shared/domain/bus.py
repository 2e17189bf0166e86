"""Event bus contracts."""

from __future__ import annotations

from typing import Generic, Iterable, Protocol, Type, TypeVar

from shared.domain.events import DomainEvent

E = TypeVar("E", bound=DomainEvent, contravariant=True)


class IEventHandler(Protocol, Generic[E]):
    def handle(self, event: E) -> None: ...


class IEventBus(Protocol):
    def publish(self, event: DomainEvent) -> None: ...

    def publish_all(self, events: Iterable[DomainEvent]) -> None: ...

    def subscribe(self, event_class: Type[E], handler: IEventHandler[E]) -> None: ...
