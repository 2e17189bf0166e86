"""Product service layer (catalog use cases).

Catalog reads are public; writes are admin-only and gated by
``requires(Role.ADMIN)``.  Stock changes caused by orders never pass
through here: they go through ``StockLedger``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog
from django.db import transaction
from django.db.models import ProtectedError

from modules.core.identity import Role
from modules.core.permissions import requires
from modules.products.exceptions import ProductInUse, ProductNotFound
from modules.products.models import Product

if TYPE_CHECKING:
    from modules.core.identity import CallerIdentity
    from modules.products.dtos import CreateProductDTO, UpdateProductDTO
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)

_UPDATABLE_FIELDS = (
    "name",
    "price",
    "description",
    "category",
    "image_url",
    "stock_quantity",
    "rating",
)


class ProductService:
    """Application service for catalog use-cases."""

    def __init__(self, repository: IProductRepository) -> None:
        self._repo = repository

    # ------------------------------------------------------------------
    # Commands (admin)
    # ------------------------------------------------------------------

    @requires(Role.ADMIN)
    @transaction.atomic
    def create_product(self, dto: CreateProductDTO, *, actor: CallerIdentity) -> Product:
        product = Product(**dto.model_dump())
        product = self._repo.save(product)
        logger.info("product.created", product_id=str(product.id), actor_id=actor.id)
        return product

    @requires(Role.ADMIN)
    @transaction.atomic
    def update_product(
        self, id: str, dto: UpdateProductDTO, *, actor: CallerIdentity
    ) -> Product:
        """Apply the non-``None`` fields of *dto*.

        Only those columns are written, so a ledger decrement or restore
        that commits after the read is kept.

        Raises:
            ProductNotFound: if the product does not exist.
        """
        product = self._repo.get_by_id(id)
        if not product:
            raise ProductNotFound(f"Product {id} not found.")

        changed = []
        for field in _UPDATABLE_FIELDS:
            value = getattr(dto, field)
            if value is not None:
                setattr(product, field, value)
                changed.append(field)

        if changed:
            product = self._repo.update_fields(product, changed)
        logger.info("product.updated", product_id=str(id), actor_id=actor.id)
        return product

    @requires(Role.ADMIN)
    @transaction.atomic
    def delete_product(self, id: str, *, actor: CallerIdentity) -> None:
        """Hard-delete a product.

        Raises:
            ProductNotFound: if the product does not exist.
            ProductInUse: the product is referenced by order items.
        """
        try:
            deleted = self._repo.delete(id)
        except ProtectedError as exc:
            raise ProductInUse(
                f"Product {id} is referenced by existing orders."
            ) from exc
        if not deleted:
            raise ProductNotFound(f"Product {id} not found.")
        logger.info("product.deleted", product_id=str(id), actor_id=actor.id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_products(self, filters: Optional[Dict[str, Any]] = None) -> List[Product]:
        return self._repo.list(filters)

    def get_product(self, id: str) -> Product:
        """Raises ``ProductNotFound`` if the product does not exist."""
        product = self._repo.get_by_id(id)
        if not product:
            raise ProductNotFound(f"Product {id} not found.")
        return product
