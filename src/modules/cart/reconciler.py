"""Cart Reconciler: the per-session shopping cart.

The cart lives outside the database.  Each mutation that can grow a
line is checked against live stock through ``IStockLedger`` before it is
committed locally.  That check is advisory: stock can move between "add
to cart" and checkout, and only ``StockLedger.decrement`` at order
placement is authoritative.

Rules:
- ``add`` rejects products with no stock (``OutOfStock``) and any add
  whose merged quantity would exceed stock (``StockExceeded``); a
  rejected add leaves the cart untouched.
- ``update_quantity`` clamps to a minimum of 1 and does not re-read stock.
- ``remove`` of an absent product is a no-op.
- ``total`` is pure: no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

import structlog

from modules.cart.exceptions import OutOfStock, StockExceeded
from modules.notifications.sinks import Severity

if TYPE_CHECKING:
    from modules.notifications.sinks import NotificationSink
    from modules.products.models import Product
    from modules.products.repositories.interfaces import IStockLedger

logger = structlog.get_logger(__name__)


@dataclass
class CartItem:
    product_id: str
    name: str
    price: Decimal
    quantity: int
    image_url: str = ""

    @property
    def subtotal(self) -> Decimal:
        return self.price * self.quantity

    def to_dict(self) -> Dict[str, Any]:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "price": str(self.price),
            "quantity": self.quantity,
            "image_url": self.image_url,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> CartItem:
        return cls(
            product_id=str(data["product_id"]),
            name=data.get("name", ""),
            price=Decimal(str(data["price"])),
            quantity=int(data["quantity"]),
            image_url=data.get("image_url", ""),
        )


class CartReconciler:
    def __init__(
        self,
        ledger: IStockLedger,
        notifier: Optional[NotificationSink] = None,
        items: Iterable[CartItem] = (),
        owner_id: str = "",
    ) -> None:
        self._ledger = ledger
        self._notifier = notifier
        self._owner_id = owner_id
        self._items: Dict[str, CartItem] = {item.product_id: item for item in items}

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add(self, product: Product, quantity: int = 1) -> CartItem:
        """Add *quantity* units of *product*, merging with an existing line.

        New lines are capped at current stock as well, not only merges.

        Raises:
            ValueError: quantity is not positive.
            ProductNotFound: the product no longer exists.
            OutOfStock: stock is zero.
            StockExceeded: requested plus any existing quantity exceeds stock.
        """
        if quantity < 1:
            raise ValueError("Quantity must be at least 1.")

        key = str(product.id)
        log = logger.bind(product_id=key, owner_id=self._owner_id)
        stock = self._ledger.get_stock(product.id)

        if stock <= 0:
            log.info("cart.add_rejected", reason="out_of_stock")
            self._notify("Product is out of stock", Severity.ERROR)
            raise OutOfStock(f"Product {key} is out of stock.")

        existing = self._items.get(key)
        merged = quantity + (existing.quantity if existing else 0)
        if merged > stock:
            log.info("cart.add_rejected", reason="stock_exceeded", requested=merged, stock=stock)
            self._notify(f"Only {stock} left in stock", Severity.ERROR)
            raise StockExceeded(key, stock)

        if existing:
            existing.quantity = merged
            item = existing
        else:
            item = CartItem(
                product_id=key,
                name=product.name,
                price=product.price,
                quantity=quantity,
                image_url=product.image_url,
            )
            self._items[key] = item

        log.info("cart.item_added", quantity=item.quantity)
        self._notify("Added to cart!", Severity.SUCCESS)
        return item

    def remove(self, product_id: str) -> None:
        if self._items.pop(str(product_id), None) is not None:
            logger.info("cart.item_removed", product_id=str(product_id), owner_id=self._owner_id)

    def update_quantity(self, product_id: str, quantity: int) -> Optional[CartItem]:
        """Set a line's quantity, clamped to at least 1; ``None`` if absent."""
        item = self._items.get(str(product_id))
        if item is None:
            return None
        item.quantity = max(1, quantity)
        return item

    def clear(self) -> None:
        self._items.clear()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def items(self) -> List[CartItem]:
        """Snapshot of the lines in insertion order."""
        return [
            CartItem(i.product_id, i.name, i.price, i.quantity, i.image_url)
            for i in self._items.values()
        ]

    def get(self, product_id: str) -> Optional[CartItem]:
        return self._items.get(str(product_id))

    def total(self) -> Decimal:
        return sum((item.subtotal for item in self._items.values()), Decimal("0.00"))

    @property
    def is_empty(self) -> bool:
        return not self._items

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def _notify(self, message: str, severity: Severity) -> None:
        if self._notifier is not None:
            self._notifier.notify(message, severity, self._owner_id)
