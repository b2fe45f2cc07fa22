"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).

- ``CreateOrderDTO``: input for order creation.
- ``OrderEventDTO``: one timeline entry, enriched with the actor's
  current display data; also the payload pushed to live subscribers.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

if TYPE_CHECKING:
    from modules.orders.models import OrderEvent


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order creation requests.

    Validates:
    - ``spa_name``, ``address`` and ``product_name`` are non-empty after
      trimming (stored trimmed).
    - ``quantity`` is a positive integer.
    """

    model_config = ConfigDict(frozen=True)

    spa_name: str
    address: str
    product_name: str
    quantity: int
    salesperson_id: UUID
    distributor_id: Optional[UUID] = None
    idempotency_key: Optional[str] = None

    @field_validator("spa_name", "address", "product_name")
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Field must not be empty.")
        return v

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class OrderEventDTO(BaseModel):
    """Immutable DTO for one timeline entry."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    order_id: UUID
    type: str
    message: str
    actor_id: Optional[UUID]
    actor_role: str
    actor_name: Optional[str] = None
    actor_email: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_entity(cls, event: OrderEvent) -> OrderEventDTO:
        """Build from a model instance; ``actor`` should be select-related."""
        actor = event.actor
        return cls(
            id=event.id,
            order_id=event.order_id,
            type=event.type,
            message=event.message,
            actor_id=event.actor_id,
            actor_role=event.actor_role,
            actor_name=actor.display_name if actor else None,
            actor_email=(actor.email or None) if actor else None,
            created_at=event.created_at,
        )
