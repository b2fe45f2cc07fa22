"""Domain events for the Orders bounded context."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderEventAppended(DomainEvent):
    """Raised after commit for every timeline entry appended to an order.

    ``payload`` is the JSON-ready ``OrderEventDTO`` of the new entry.
    """

    payload: Dict[str, Any] = field(default_factory=dict)
