"""Order timeline (append-only event log).

``TimelineService`` owns every write to the timeline:

- ``append`` is the standalone Append operation (looks the order up and
  locks it first).
- ``record`` is used by ``OrderService`` inside its own write transaction
  once the order row is already locked.
- ``list_by_order`` reads the timeline newest-first, with the actor's
  current display data joined from the directory.
- ``subscribe`` hands out a cancellable live feed of newly committed
  entries.

Live delivery is scheduled with ``transaction.on_commit``: entries from a
rolled-back transaction are never pushed to subscribers.

``TimelineBackfillService`` is the one place allowed to backdate an
entry: it gives legacy orders their missing ``created`` event using the
order's own creation time.
"""

from __future__ import annotations

from functools import partial
from typing import TYPE_CHECKING, Iterator, List, Optional
from uuid import UUID

import structlog
from django.db import transaction

from modules.accounts.constants import Role
from modules.accounts.exceptions import InvalidActorRole
from modules.orders.constants import EVENT_MESSAGES, TIMELINE_CHANNEL, OrderEventType
from modules.orders.dtos import OrderEventDTO
from modules.orders.events import OrderEventAppended
from modules.orders.exceptions import OrderNotFound
from shared.infrastructure.broadcast import Subscription, get_broadcaster
from shared.infrastructure.bus import event_bus
from shared.infrastructure.db import translate_backend_errors

if TYPE_CHECKING:
    from modules.accounts.dtos import ActorDTO
    from modules.accounts.services import UserDirectory
    from modules.orders.models import Order, OrderEvent
    from modules.orders.repositories.interfaces import (
        IOrderEventRepository,
        IOrderRepository,
    )

logger = structlog.get_logger(__name__)


class TimelineSubscription:
    """Cancellable live feed of one order's new timeline entries.

    Iterate to receive ``OrderEventDTO`` objects in append order; the
    iterator is unbounded and ends only after ``cancel()``.  Use
    ``next_event(timeout)`` for a bounded wait.  Nothing published before
    the subscription started, or while it was cancelled, is replayed.
    """

    def __init__(self, order_id: UUID, subscription: Subscription) -> None:
        self.order_id = order_id
        self._subscription = subscription

    @property
    def cancelled(self) -> bool:
        return self._subscription.cancelled

    def next_event(self, timeout: Optional[float] = None) -> Optional[OrderEventDTO]:
        message = self._subscription.next_message(timeout=timeout)
        if message is None:
            return None
        return OrderEventDTO.model_validate(message)

    def cancel(self) -> None:
        self._subscription.cancel()

    def __iter__(self) -> Iterator[OrderEventDTO]:
        for message in self._subscription:
            yield OrderEventDTO.model_validate(message)

    def __enter__(self) -> TimelineSubscription:
        return self

    def __exit__(self, *exc_info) -> None:
        self.cancel()


class TimelineService:
    """Application service for the order timeline."""

    def __init__(
        self,
        order_repository: IOrderRepository,
        event_repository: IOrderEventRepository,
        directory: UserDirectory,
    ) -> None:
        self._order_repo = order_repository
        self._event_repo = event_repository
        self._directory = directory

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @translate_backend_errors
    @transaction.atomic
    def append(
        self,
        order_id: UUID | str,
        event_type: str,
        actor_id: UUID | str,
        actor_role: str,
        message: str,
    ) -> OrderEvent:
        """Append one event to an existing order's timeline.

        Raises:
            OrderNotFound: the order does not exist at append time.
            UserNotFound: the actor id is unknown to the directory.
            InvalidActorRole: ``actor_role`` is not a known role.
        """
        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            logger.warning("timeline.append_rejected", order_id=str(order_id))
            raise OrderNotFound(f"Order {order_id} not found.")
        if actor_role not in Role.values:
            raise InvalidActorRole(f"Unknown role {actor_role!r}.")

        actor = self._directory.get_actor(actor_id)
        return self.record(
            order,
            event_type,
            actor.model_copy(update={"role": Role(actor_role)}),
            message,
        )

    def record(
        self,
        order: Order,
        event_type: str,
        actor: ActorDTO,
        message: str,
    ) -> OrderEvent:
        """Append an event for an order the caller has already locked.

        Must run inside the caller's transaction; live delivery happens
        only once that transaction commits.
        """
        event = self._event_repo.add(
            order_id=order.id,
            event_type=event_type,
            message=message,
            actor_id=actor.id,
            actor_role=str(actor.role),
        )
        dto = OrderEventDTO(
            id=event.id,
            order_id=order.id,
            type=event.type,
            message=event.message,
            actor_id=actor.id,
            actor_role=event.actor_role,
            actor_name=actor.name or None,
            actor_email=actor.email or None,
            created_at=event.created_at,
        )
        transaction.on_commit(
            partial(
                event_bus.publish,
                OrderEventAppended(
                    aggregate_id=order.id, payload=dto.model_dump(mode="json")
                ),
            ),
            robust=True,
        )
        logger.info(
            "timeline.event_appended",
            order_id=str(order.id),
            event_type=event_type,
            actor_id=str(actor.id),
            actor_role=str(actor.role),
        )
        return event

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @translate_backend_errors
    def list_by_order(self, order_id: UUID | str) -> List[OrderEventDTO]:
        """Timeline of *order_id*, newest first, enriched with actor data.

        Raises:
            OrderNotFound: the order does not exist.
        """
        order = self._order_repo.get_by_id(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return [
            OrderEventDTO.from_entity(e)
            for e in self._event_repo.list_for_order(order.id)
        ]

    def subscribe(self, order_id: UUID | str) -> TimelineSubscription:
        """Open a live feed of new entries for *order_id*.

        Raises:
            OrderNotFound: the order does not exist.
        """
        order = self._order_repo.get_by_id(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        channel = TIMELINE_CHANNEL.format(order_id=order.id)
        logger.info("timeline.subscribed", order_id=str(order.id))
        return TimelineSubscription(order.id, get_broadcaster().subscribe(channel))


class TimelineBackfillService:
    """Give legacy orders the ``created`` event they never received."""

    def __init__(
        self,
        order_repository: IOrderRepository,
        event_repository: IOrderEventRepository,
        directory: UserDirectory,
    ) -> None:
        self._order_repo = order_repository
        self._event_repo = event_repository
        self._directory = directory

    @translate_backend_errors
    def run(self) -> int:
        """Backfill every order lacking a ``created`` event.

        Idempotent: orders that already have one are skipped, including
        ones that gained it while the sweep was running.

        Returns:
            The number of events written.
        """
        system_actor = self._directory.get_system_actor()
        candidates = self._order_repo.list_missing_event(OrderEventType.CREATED)
        log = logger.bind(candidates=len(candidates))
        log.info("timeline.backfill_started")

        written = 0
        for candidate in candidates:
            if self._backfill_order(candidate.id, system_actor):
                written += 1

        log.info("timeline.backfill_completed", written=written)
        return written

    @transaction.atomic
    def _backfill_order(self, order_id: UUID, actor: ActorDTO) -> bool:
        order = self._order_repo.get_for_update(str(order_id))
        if not order or self._event_repo.exists(order.id, OrderEventType.CREATED):
            return False
        self._event_repo.add(
            order_id=order.id,
            event_type=OrderEventType.CREATED,
            message=EVENT_MESSAGES[OrderEventType.CREATED],
            actor_id=actor.id,
            actor_role=str(Role.ADMIN),
            created_at=order.created_at,
        )
        logger.info("timeline.order_backfilled", order_id=str(order.id))
        return True
