"""Django ORM implementation of the Product repository.

Follows the Null Object pattern: look-ups return ``None`` instead of
raising, and the Service Layer decides how a missing product surfaces.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction

from modules.products.models import Product
from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class ProductDjangoRepository(IProductRepository):
    """Concrete Product repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Product]:
        try:
            return Product.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Product]:
        """List products with optional Django ORM look-ups.

        Examples of valid filters::

            {"category__iexact": "shoes"}
            {"name__icontains": "kurta", "stock_quantity__gt": 0}
        """
        queryset = Product.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    @transaction.atomic
    def save(self, entity: Product) -> Product:
        entity.save()
        logger.info("product.saved", product_id=str(entity.id))
        return entity

    @transaction.atomic
    def update_fields(self, entity: Product, fields: Sequence[str]) -> Product:
        """Partial update; columns outside *fields* keep their stored value.

        ``stock_quantity`` belongs to ``StockLedger`` and is written here
        only when listed in *fields*.
        """
        entity.save(update_fields=list(fields))
        entity.refresh_from_db()
        logger.info("product.saved", product_id=str(entity.id), fields=list(fields))
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        """Hard-delete a product.

        Products referenced by order items are protected by the FK and
        raise ``ProtectedError``; the service turns that into a domain error.
        """
        product = self.get_by_id(id)
        if not product:
            return False
        product.delete()
        logger.info("product.deleted", product_id=str(id))
        return True
