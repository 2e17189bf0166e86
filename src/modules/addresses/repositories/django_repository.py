"""Django ORM implementation of the Address repository."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction

from modules.addresses.models import Address
from modules.addresses.repositories.interfaces import IAddressRepository

logger = structlog.get_logger(__name__)


class AddressDjangoRepository(IAddressRepository):
    """Concrete Address repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Address]:
        try:
            return Address.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Address]:
        queryset = Address.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def list_for_user(self, user_id: str) -> List[Address]:
        return list(
            Address.objects.filter(user_id=user_id).order_by("-is_default", "-created_at", "-id")
        )

    def get_for_user(self, user_id: str, address_id: str) -> Optional[Address]:
        try:
            return Address.objects.filter(id=address_id, user_id=user_id).first()
        except (ValueError, ValidationError):
            return None

    def get_default(self, user_id: str) -> Optional[Address]:
        return Address.objects.filter(user_id=user_id, is_default=True).first()

    @transaction.atomic
    def clear_default(self, user_id: str, exclude_id: Optional[str] = None) -> int:
        queryset = Address.objects.filter(user_id=user_id, is_default=True)
        if exclude_id is not None:
            queryset = queryset.exclude(id=exclude_id)
        return queryset.update(is_default=False)

    @transaction.atomic
    def save(self, entity: Address) -> Address:
        entity.save()
        logger.info("address.saved", address_id=str(entity.id), user_id=entity.user_id)
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        address = self.get_by_id(id)
        if not address:
            return False
        address.delete()
        logger.info("address.deleted", address_id=str(id))
        return True
