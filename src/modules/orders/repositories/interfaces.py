"""Order and OrderEvent repository interfaces.

The Service Layer depends exclusively on these contracts (DIP).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.orders.models import Order, OrderEvent


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root."""

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Order:
        """Insert a new order from validated field values."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order with a row-level lock (caller owns the transaction)."""

    @abstractmethod
    def get_by_idempotency_key(self, key: str) -> Optional[Order]:
        """Retrieve an order by its idempotency key."""

    @abstractmethod
    def queryset(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
        """Lazy, filterable order set (used by the API list filters)."""

    @abstractmethod
    def list_missing_event(self, event_type: str) -> List[Order]:
        """Orders that have no timeline event of *event_type*."""


class IOrderEventRepository(ABC):
    """Append-only timeline store.  There is no update or delete."""

    @abstractmethod
    def add(
        self,
        order_id: UUID,
        event_type: str,
        message: str,
        actor_id: Optional[UUID],
        actor_role: str,
        created_at: Optional[datetime] = None,
    ) -> OrderEvent:
        """Append one event.

        ``created_at`` is assigned by the store when omitted, strictly
        after the order's latest event.  Passing it is reserved for the
        timeline backfill.
        """

    @abstractmethod
    def list_for_order(self, order_id: UUID) -> List[OrderEvent]:
        """Events for *order_id*, newest first, with the actor joined."""

    @abstractmethod
    def exists(self, order_id: UUID, event_type: str) -> bool:
        """Whether *order_id* already has an event of *event_type*."""
