"""Address service layer: address CRUD and the Address Resolver used at checkout.

Business rules enforced here:
- An address is only visible to, and editable by, its owner.
- At most one default address per user: promoting an address clears the
  previous default in the same transaction, before the new flag is
  written, so the partial unique constraint never trips.
- Resolution for checkout: the explicitly selected address when it
  belongs to the caller, otherwise the default, otherwise the newest.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

import structlog
from django.db import transaction

from modules.addresses.exceptions import AddressNotFound
from modules.addresses.models import Address

if TYPE_CHECKING:
    from modules.addresses.dtos import AddressDTO, UpdateAddressDTO
    from modules.addresses.repositories.interfaces import IAddressRepository

logger = structlog.get_logger(__name__)

_UPDATABLE_FIELDS = ("full_name", "phone", "pincode", "address_line", "city", "state")


class AddressService:
    def __init__(self, repository: IAddressRepository) -> None:
        self._repo = repository

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_addresses(self, user_id: str) -> List[Address]:
        return self._repo.list_for_user(user_id)

    def get_address(self, user_id: str, address_id: str) -> Address:
        """Raises ``AddressNotFound`` for missing or foreign addresses."""
        address = self._repo.get_for_user(user_id, address_id)
        if not address:
            raise AddressNotFound(f"Address {address_id} not found.")
        return address

    def get_default_address(self, user_id: str) -> Optional[Address]:
        """The flagged default, else the newest saved address, else ``None``."""
        default = self._repo.get_default(user_id)
        if default:
            return default
        addresses = self._repo.list_for_user(user_id)
        return addresses[0] if addresses else None

    def resolve(self, user_id: str, address_id: Optional[str] = None) -> Optional[Address]:
        """Pick the shipping address for an order.

        An explicit *address_id* that is missing or owned by someone else
        does not fall back silently: it resolves to ``None`` so checkout
        reports ``NoAddress`` instead of shipping somewhere unexpected.
        """
        if address_id:
            address = self._repo.get_for_user(user_id, address_id)
            if not address:
                logger.warning(
                    "address.resolve_miss", user_id=user_id, address_id=str(address_id)
                )
            return address
        return self.get_default_address(user_id)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_address(self, user_id: str, dto: AddressDTO) -> Address:
        if dto.is_default:
            self._repo.clear_default(user_id)
        address = Address(user_id=user_id, **dto.model_dump())
        address = self._repo.save(address)
        logger.info("address.created", address_id=str(address.id), user_id=user_id)
        return address

    @transaction.atomic
    def update_address(
        self, user_id: str, address_id: str, dto: UpdateAddressDTO
    ) -> Address:
        address = self.get_address(user_id, address_id)

        for field in _UPDATABLE_FIELDS:
            value = getattr(dto, field)
            if value is not None:
                setattr(address, field, value)

        if dto.is_default is True and not address.is_default:
            self._repo.clear_default(user_id, exclude_id=str(address.id))
            address.is_default = True
        elif dto.is_default is False:
            address.is_default = False

        address = self._repo.save(address)
        logger.info("address.updated", address_id=str(address.id), user_id=user_id)
        return address

    @transaction.atomic
    def set_default(self, user_id: str, address_id: str) -> Address:
        address = self.get_address(user_id, address_id)
        self._repo.clear_default(user_id, exclude_id=str(address.id))
        address.is_default = True
        address = self._repo.save(address)
        logger.info("address.default_set", address_id=str(address.id), user_id=user_id)
        return address

    @transaction.atomic
    def delete_address(self, user_id: str, address_id: str) -> None:
        address = self.get_address(user_id, address_id)
        self._repo.delete(str(address.id))
