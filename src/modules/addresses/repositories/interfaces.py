"""Address repository interface (the Address Store contract)."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.addresses.models import Address


class IAddressRepository(IRepository["Address"]):
    """Repository contract for user-owned shipping addresses."""

    @abstractmethod
    def list_for_user(self, user_id: str) -> List[Address]:
        """Addresses of *user_id*, default first, then newest."""

    @abstractmethod
    def get_for_user(self, user_id: str, address_id: str) -> Optional[Address]:
        """An address only if it belongs to *user_id*."""

    @abstractmethod
    def get_default(self, user_id: str) -> Optional[Address]:
        """The address flagged ``is_default`` for *user_id*, if any."""

    @abstractmethod
    def clear_default(self, user_id: str, exclude_id: Optional[str] = None) -> int:
        """Unset ``is_default`` on the user's addresses; returns rows changed."""
