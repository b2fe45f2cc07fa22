"""Django ORM implementation of the Order and OrderEvent repositories.

Concurrency control on order mutations uses ``select_for_update()``;
the lock is held until the service's ``transaction.atomic`` block ends,
which serializes every mutation of the same order.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db.models import Exists, Max, OuterRef, QuerySet
from django.utils import timezone

from modules.orders.models import Order, OrderEvent
from modules.orders.repositories.interfaces import (
    IOrderEventRepository,
    IOrderRepository,
)

logger = structlog.get_logger(__name__)

_ORDER_RELATIONS = ("salesperson", "distributor")


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, data: Dict[str, Any]) -> Order:
        """Insert an order.

        ``data`` keys: ``spa_name``, ``address``, ``product_name``,
        ``quantity``, ``salesperson_id`` (required); ``distributor_id``,
        ``idempotency_key`` (optional).  Status and payment status always
        start at their defaults.
        """
        order = Order(
            spa_name=data["spa_name"],
            address=data["address"],
            product_name=data["product_name"],
            quantity=data["quantity"],
            salesperson_id=data["salesperson_id"],
            distributor_id=data.get("distributor_id"),
            idempotency_key=data.get("idempotency_key"),
        )
        order.save()
        logger.info("order.inserted", order_id=str(order.id))
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with salesperson/distributor joined.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return Order.objects.select_related(*_ORDER_RELATIONS).filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order with a row-level lock (SELECT FOR UPDATE).

        Only the order row is locked (``of=("self",)``) so the joined user
        rows stay free for concurrent readers.  Returns ``None`` for
        non-existent or invalid IDs.
        """
        try:
            return (
                Order.objects.select_for_update(of=("self",))
                .select_related(*_ORDER_RELATIONS)
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def get_by_idempotency_key(self, key: str) -> Optional[Order]:
        return (
            Order.objects.select_related(*_ORDER_RELATIONS)
            .filter(idempotency_key=key)
            .first()
        )

    def queryset(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
        queryset = Order.objects.select_related(*_ORDER_RELATIONS)
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        """List orders, newest first.

        Supported filter keys include ``status``, ``payment_status``,
        ``salesperson_id``, ``distributor_id`` and ``created_at__range``.
        """
        return list(self.queryset(filters))

    def list_missing_event(self, event_type: str) -> List[Order]:
        has_event = OrderEvent.objects.filter(order=OuterRef("pk"), type=event_type)
        return list(
            Order.objects.filter(~Exists(has_event)).order_by("created_at", "id")
        )

    # ------------------------------------------------------------------
    # Save
    # ------------------------------------------------------------------

    def save(self, entity: Order) -> Order:
        """Persist (create or update) an order."""
        entity.save()
        logger.info("order.saved", order_id=str(entity.id))
        return entity


class OrderEventDjangoRepository(IOrderEventRepository):
    """Append-only timeline store backed by Django ORM."""

    def add(
        self,
        order_id: UUID,
        event_type: str,
        message: str,
        actor_id: Optional[UUID],
        actor_role: str,
        created_at: Optional[datetime] = None,
    ) -> OrderEvent:
        if created_at is None:
            created_at = self._next_timestamp(order_id)
        event = OrderEvent(
            order_id=order_id,
            type=event_type,
            message=message,
            actor_id=actor_id,
            actor_role=actor_role,
            created_at=created_at,
        )
        event.save()
        logger.info(
            "timeline.event_inserted",
            order_id=str(order_id),
            event_id=str(event.id),
            event_type=event_type,
        )
        return event

    def list_for_order(self, order_id: UUID) -> List[OrderEvent]:
        return list(
            OrderEvent.objects.select_related("actor")
            .filter(order_id=order_id)
            .order_by("-created_at", "-id")
        )

    def exists(self, order_id: UUID, event_type: str) -> bool:
        return OrderEvent.objects.filter(order_id=order_id, type=event_type).exists()

    @staticmethod
    def _next_timestamp(order_id: UUID) -> datetime:
        """Now, or 1µs after the order's latest event if the clock has not moved.

        Keeps per-order event times strictly increasing; callers hold the
        order row lock, so no other append for this order is in flight.
        """
        now = timezone.now()
        latest = OrderEvent.objects.filter(order_id=order_id).aggregate(
            latest=Max("created_at")
        )["latest"]
        if latest is not None and now <= latest:
            return latest + timedelta(microseconds=1)
        return now
