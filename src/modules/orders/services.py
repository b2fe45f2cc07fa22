"""Order service layer (Use Cases).

Orchestrates the order lifecycle: creation, delivery status, payment
status and distributor assignment.  All write operations are atomic; the
service defines the unit-of-work boundary.

Business rules enforced:
- Orders start Pending / Unpaid and reference a Salesperson (or Admin).
- Status moves forward one step at a time, under SELECT FOR UPDATE.
- Payment status toggles freely.
- Every accepted change appends exactly one timeline event in the same
  transaction; if the append fails the change is rolled back.
- Re-applying the current value is a no-op and appends nothing.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional
from uuid import UUID

import structlog
from django.db import (
    DatabaseError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    transaction,
)

from modules.accounts.constants import Role
from modules.accounts.exceptions import InvalidActorRole
from modules.orders.constants import (
    EVENT_MESSAGES,
    OrderEventType,
    OrderStatus,
    PaymentStatus,
)
from modules.orders.exceptions import (
    ConsistencyFailure,
    InvalidStatusTransition,
    OrderNotFound,
    OrderValidationError,
)
from shared.infrastructure.db import translate_backend_errors

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.accounts.dtos import ActorDTO
    from modules.accounts.services import UserDirectory
    from modules.orders.dtos import CreateOrderDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.orders.timeline import TimelineService

logger = structlog.get_logger(__name__)


class OrderService:
    """Application service for Order use-cases.

    Receives its collaborators via constructor injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        timeline: TimelineService,
        directory: UserDirectory,
    ) -> None:
        self._order_repo = order_repository
        self._timeline = timeline
        self._directory = directory

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @translate_backend_errors
    @transaction.atomic
    def create_order(self, dto: CreateOrderDTO, actor: ActorDTO) -> Order:
        """Create a Pending / Unpaid order and its ``created`` event.

        Steps:
        1. Return the existing order when the idempotency key was seen.
        2. Check the salesperson (and optional distributor) roles.
        3. Persist the order.
        4. Append ``created`` to the timeline.

        Raises:
            UserNotFound: a referenced user does not exist.
            OrderValidationError: a referenced user has the wrong role.
            ConsistencyFailure: the timeline append failed.
        """
        log = logger.bind(
            salesperson_id=str(dto.salesperson_id), actor_id=str(actor.id)
        )
        log.info("order.creation_started")

        if dto.idempotency_key:
            existing = self._order_repo.get_by_idempotency_key(dto.idempotency_key)
            if existing:
                log.info(
                    "order.idempotency_hit",
                    order_id=str(existing.id),
                    key=dto.idempotency_key,
                )
                return existing

        self._require_reference(
            dto.salesperson_id, "salesperson", Role.SALESPERSON, Role.ADMIN
        )
        if dto.distributor_id:
            self._require_reference(dto.distributor_id, "distributor", Role.DISTRIBUTOR)

        try:
            with transaction.atomic():
                order = self._order_repo.create(
                    {
                        "spa_name": dto.spa_name,
                        "address": dto.address,
                        "product_name": dto.product_name,
                        "quantity": dto.quantity,
                        "salesperson_id": dto.salesperson_id,
                        "distributor_id": dto.distributor_id,
                        "idempotency_key": dto.idempotency_key,
                    }
                )
        except IntegrityError:
            # A concurrent request with the same key committed first
            winner = dto.idempotency_key and self._order_repo.get_by_idempotency_key(
                dto.idempotency_key
            )
            if not winner:
                raise
            log.info(
                "order.idempotency_race_lost",
                order_id=str(winner.id),
                key=dto.idempotency_key,
            )
            return winner

        self._append_event(
            order, OrderEventType.CREATED, EVENT_MESSAGES[OrderEventType.CREATED], actor
        )

        log.info("order.created", order_id=str(order.id))
        return self._order_repo.get_by_id(str(order.id)) or order

    @translate_backend_errors
    @transaction.atomic
    def update_status(
        self, order_id: UUID | str, new_status: str, actor: ActorDTO
    ) -> Order:
        """Move an order one step forward.

        Acquires a row-level lock (``SELECT FOR UPDATE``) on the order
        before validating the transition, so concurrent updates of the
        same order are serialized and the loser sees the winner's status.

        Raises:
            OrderNotFound: order does not exist.
            InvalidStatusTransition: not the single forward step.
            ConsistencyFailure: the timeline append failed.
        """
        order = self._lock_order(order_id)
        log = logger.bind(
            order_id=str(order.id),
            current_status=order.status,
            new_status=new_status,
            actor_id=str(actor.id),
        )

        if new_status == order.status:
            log.info("order.status_unchanged")
            return order

        if not order.can_transition_to(new_status):
            log.warning("order.invalid_transition")
            raise InvalidStatusTransition(
                f"Cannot transition from {order.status} to {new_status}."
            )

        order.status = OrderStatus(new_status)
        self._order_repo.save(order)
        self._append_event(
            order,
            OrderEventType.STATUS_UPDATED,
            EVENT_MESSAGES[OrderEventType.STATUS_UPDATED].format(status=new_status),
            actor,
        )

        log.info("order.status_updated")
        return self._order_repo.get_by_id(str(order.id)) or order

    @translate_backend_errors
    @transaction.atomic
    def update_payment_status(
        self, order_id: UUID | str, new_payment_status: str, actor: ActorDTO
    ) -> Order:
        """Set the payment status; allowed from any delivery status.

        Raises:
            OrderNotFound: order does not exist.
            OrderValidationError: unknown payment status.
            ConsistencyFailure: the timeline append failed.
        """
        if new_payment_status not in PaymentStatus.values:
            raise OrderValidationError(
                f"Unknown payment status {new_payment_status!r}."
            )

        order = self._lock_order(order_id)
        log = logger.bind(
            order_id=str(order.id),
            current_payment_status=order.payment_status,
            new_payment_status=new_payment_status,
            actor_id=str(actor.id),
        )

        if new_payment_status == order.payment_status:
            log.info("order.payment_unchanged")
            return order

        order.payment_status = PaymentStatus(new_payment_status)
        self._order_repo.save(order)
        self._append_event(
            order,
            OrderEventType.PAYMENT_UPDATED,
            EVENT_MESSAGES[OrderEventType.PAYMENT_UPDATED].format(
                payment_status=new_payment_status
            ),
            actor,
        )

        log.info("order.payment_updated")
        return self._order_repo.get_by_id(str(order.id)) or order

    @translate_backend_errors
    @transaction.atomic
    def assign_distributor(
        self, order_id: UUID | str, distributor_id: UUID | str, actor: ActorDTO
    ) -> Order:
        """Assign (or reassign) the distributor fulfilling an order.

        Raises:
            OrderNotFound: order does not exist.
            UserNotFound: distributor does not exist.
            InvalidActorRole: the user is not a Distributor.
            InvalidStatusTransition: the order is already delivered.
            ConsistencyFailure: the timeline append failed.
        """
        order = self._lock_order(order_id)
        distributor = self._directory.require_role(distributor_id, Role.DISTRIBUTOR)
        log = logger.bind(
            order_id=str(order.id),
            distributor_id=str(distributor.id),
            actor_id=str(actor.id),
        )

        if order.distributor_id == distributor.id:
            log.info("order.distributor_unchanged")
            return order

        if order.is_terminal:
            log.warning("order.assign_not_allowed", status=order.status)
            raise InvalidStatusTransition(
                f"Cannot reassign an order in status {order.status}."
            )

        order.distributor_id = distributor.id
        self._order_repo.save(order)
        self._append_event(
            order,
            OrderEventType.ASSIGNED,
            EVENT_MESSAGES[OrderEventType.ASSIGNED].format(
                name=distributor.name or distributor.email or distributor.id
            ),
            actor,
        )

        log.info("order.distributor_assigned")
        return self._order_repo.get_by_id(str(order.id)) or order

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @translate_backend_errors
    def get_order(self, order_id: UUID | str) -> Order:
        """Retrieve a single order by ID.

        Raises:
            OrderNotFound: if the order does not exist.
        """
        order = self._order_repo.get_by_id(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    @translate_backend_errors
    def list_orders(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        """Return every order, newest first, optionally filtered."""
        return self._order_repo.list(filters)

    @translate_backend_errors
    def search_orders(
        self, narrow: Callable[[QuerySet[Order]], QuerySet[Order]]
    ) -> List[Order]:
        """Evaluate every order narrowed by *narrow* (e.g. the API filterset)."""
        return list(narrow(self._order_repo.queryset()))

    def list_by_salesperson(self, salesperson_id: UUID | str) -> List[Order]:
        return self.list_orders({"salesperson_id": salesperson_id})

    def list_by_distributor(self, distributor_id: UUID | str) -> List[Order]:
        return self.list_orders({"distributor_id": distributor_id})

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _lock_order(self, order_id: UUID | str) -> Order:
        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            logger.warning("order.not_found", order_id=str(order_id))
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def _require_reference(self, user_id: UUID, field: str, *roles: Role) -> None:
        try:
            self._directory.require_role(user_id, *roles)
        except InvalidActorRole as exc:
            raise OrderValidationError(f"Invalid {field}: {exc}") from exc

    def _append_event(
        self, order: Order, event_type: str, message: str, actor: ActorDTO
    ) -> None:
        """Append the event for a change already applied to *order*.

        Must run inside the caller's atomic block: raising here rolls the
        order change back with it.  Backend timeouts propagate unchanged
        and surface as ``RetryableError``.
        """
        try:
            self._timeline.record(order, event_type, actor, message)
        except (OperationalError, InterfaceError):
            raise
        except DatabaseError as exc:
            logger.error(
                "order.event_append_failed",
                order_id=str(order.id),
                event_type=event_type,
                error=str(exc),
            )
            raise ConsistencyFailure(
                f"Could not record {event_type} for order {order.id}; "
                "change rolled back."
            ) from exc
