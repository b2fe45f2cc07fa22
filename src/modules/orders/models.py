"""Order and OrderEvent models.

Business rules implemented:
- Status only moves forward, one step at a time: Pending -> Dispatched ->
  Delivered (enforced at service layer via ``can_transition_to``).
- Payment status toggles freely between Unpaid and Paid.
- Every order mutation appends exactly one ``OrderEvent`` in the same
  transaction (see ``OrderService``).
- Events are append-only: updating or deleting one raises
  ``ImmutableEventError``; the order FK uses PROTECT so an order with a
  timeline cannot be removed.
- Idempotency via ``idempotency_key`` unique constraint.
"""

from __future__ import annotations

from typing import Any

from django.conf import settings
from django.db import models
from django.utils import timezone

from modules.core.models import TimestampedModel, UUIDModel
from modules.orders.constants import (
    NEXT_STATUS,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    OrderEventType,
    OrderStatus,
    PaymentStatus,
)
from modules.orders.exceptions import ImmutableEventError


class Order(TimestampedModel):
    """Order aggregate root.

    ``distributor`` is optional at creation; an admin assigns it later.
    ``idempotency_key`` is nullable: only orders created through the API
    with an ``Idempotency-Key`` header carry one.
    """

    spa_name: models.CharField = models.CharField(max_length=255)
    address: models.TextField = models.TextField()
    product_name: models.CharField = models.CharField(max_length=255)
    quantity: models.PositiveIntegerField = models.PositiveIntegerField()
    status: models.CharField = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
    )
    payment_status: models.CharField = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.UNPAID,
    )
    salesperson: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="sold_orders",
    )
    distributor: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="assigned_orders",
        null=True,
        blank=True,
    )
    idempotency_key: models.CharField = models.CharField(
        max_length=255,
        unique=True,
        null=True,
        blank=True,
    )

    class Meta:
        db_table = "orders"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="orders_quantity_positive",
            ),
        ]

    # ------------------------------------------------------------------
    # State Machine helpers
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        """Return ``True`` if the order is in a terminal state."""
        return self.status in TERMINAL_STATES

    @property
    def next_status(self) -> str | None:
        """The only status this order may move to next, if any."""
        return NEXT_STATUS.get(self.status)

    def can_transition_to(self, new_status: str) -> bool:
        """Check whether transitioning to *new_status* is valid."""
        allowed = VALID_TRANSITIONS.get(self.status, set())
        return new_status in allowed

    def __str__(self) -> str:
        return f"{self.spa_name} / {self.product_name} x{self.quantity} ({self.status})"


class OrderEvent(UUIDModel):
    """Append-only audit record describing one change to an Order.

    ``actor_role`` is a copy of the actor's role at the time of the action;
    display name and email are joined from the directory at read time.
    ``actor`` is nullable only so the directory may drop a user without
    losing the audit record.

    ``created_at`` is assigned by the repository (strictly increasing per
    order); only the timeline backfill supplies a historical value.
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.PROTECT,
        related_name="events",
    )
    type: models.CharField = models.CharField(
        max_length=50,
        choices=OrderEventType.choices,
    )
    message: models.TextField = models.TextField(blank=True, default="")
    actor: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="order_events",
    )
    actor_role: models.CharField = models.CharField(max_length=20)
    created_at: models.DateTimeField = models.DateTimeField(
        default=timezone.now,
        editable=False,
    )

    class Meta:
        db_table = "order_events"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(
                fields=["order", "-created_at"],
                name="oe_order_created_idx",
            ),
        ]

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self._state.adding:
            raise ImmutableEventError(f"Order event {self.id} cannot be modified.")
        kwargs["force_insert"] = True
        super().save(*args, **kwargs)

    def delete(self, *args: Any, **kwargs: Any):
        raise ImmutableEventError(f"Order event {self.id} cannot be deleted.")

    def __str__(self) -> str:
        return f"{self.order_id} : {self.type} by {self.actor_role}"
