"""Base repository contract that the order and actor stores extend.

Services receive repositories through their constructors and only ever
talk to these abstractions, so unit tests can hand them a ``MagicMock``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, List, Optional, TypeVar, Union
from uuid import UUID

T = TypeVar("T")

EntityId = Union[str, UUID]


class IRepository(ABC, Generic[T]):
    """Read / persist contract for one aggregate type ``T``.

    There is no ``delete``: orders, actors and timeline entries
    are kept for the audit trail.
    """

    @abstractmethod
    def get_by_id(self, id: EntityId) -> Optional[T]:
        """Return the entity, or ``None`` when the id is unknown or malformed."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[T]:
        """Entities matching ``filters`` (ORM lookups), in the store's order."""

    @abstractmethod
    def save(self, entity: T) -> T:
        """Write back a modified entity."""
