"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.
The API layer (Views) catches these and translates them into
appropriate HTTP responses.
"""

from __future__ import annotations

from shared.domain.exceptions import NotFoundError


class OrderNotFound(NotFoundError):
    """The requested order does not exist."""


class OrderValidationError(Exception):
    """Order input is malformed or references the wrong kind of user."""


class InvalidStatusTransition(Exception):
    """The requested status is not the single forward step from the current one."""


class ConsistencyFailure(Exception):
    """The timeline append failed after the order change was accepted.

    Raised inside the write transaction so the order change rolls back.
    """


class ImmutableEventError(Exception):
    """Timeline events are append-only and cannot be changed or removed."""
