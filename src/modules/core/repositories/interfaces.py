"""Generic repository interface (Dependency Inversion Principle).

Services depend on these abstractions, never on the Django ORM directly,
so the managed backend behind them can be swapped or faked in tests.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, List, Optional, TypeVar

T = TypeVar("T")


class IRepository(ABC, Generic[T]):
    """Base contract: ``T`` is the entity managed by the repository."""

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[T]:
        """Retrieve an entity by primary key, ``None`` when missing."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[T]:
        """List entities with optional ORM-style look-ups."""

    @abstractmethod
    def save(self, entity: T) -> T:
        """Persist (create or update) an entity."""

    @abstractmethod
    def delete(self, id: str) -> bool:
        """Hard-delete an entity; ``False`` if it did not exist."""
