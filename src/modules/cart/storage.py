"""Keeps one cart per caller between requests.

Carts are session state, not business records: they sit in the Django
cache (Redis in production) under ``cart:<identity id>`` and expire
after ``CART_TTL_SECONDS`` of inactivity.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from django.conf import settings
from django.core.cache import cache

from modules.cart.reconciler import CartItem, CartReconciler

if TYPE_CHECKING:
    from modules.core.identity import CallerIdentity
    from modules.notifications.sinks import NotificationSink
    from modules.products.repositories.interfaces import IStockLedger


class CartStorage:
    key_prefix = "cart"

    def __init__(
        self,
        ledger: IStockLedger,
        notifier: Optional[NotificationSink] = None,
        ttl: Optional[int] = None,
    ) -> None:
        self._ledger = ledger
        self._notifier = notifier
        self._ttl = ttl if ttl is not None else settings.CART_TTL_SECONDS

    def _key(self, identity: CallerIdentity) -> str:
        return f"{self.key_prefix}:{identity.id}"

    def load(self, identity: CallerIdentity) -> CartReconciler:
        raw = cache.get(self._key(identity)) or []
        return CartReconciler(
            ledger=self._ledger,
            notifier=self._notifier,
            items=[CartItem.from_dict(entry) for entry in raw],
            owner_id=identity.id,
        )

    def save(self, identity: CallerIdentity, cart: CartReconciler) -> None:
        if cart.is_empty:
            cache.delete(self._key(identity))
            return
        cache.set(
            self._key(identity),
            [item.to_dict() for item in cart.items()],
            timeout=self._ttl,
        )
