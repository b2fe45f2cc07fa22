"""Actor directory exceptions."""

from __future__ import annotations

from shared.domain.exceptions import NotFoundError


class UserNotFound(NotFoundError):
    """The referenced user id is not in the directory."""


class InvalidActorRole(Exception):
    """The referenced user does not hold a role the operation requires."""
