"""Actor directory service.

The order core only ever asks the directory two things: "who is this id"
(role + display data) and "does this id hold one of these roles".
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List
from uuid import UUID

import structlog
from django.conf import settings

from modules.accounts.constants import Role
from modules.accounts.dtos import ActorDTO
from modules.accounts.exceptions import InvalidActorRole, UserNotFound

if TYPE_CHECKING:
    from modules.accounts.models import User
    from modules.accounts.repositories.interfaces import IUserRepository

logger = structlog.get_logger(__name__)


class UserDirectory:
    def __init__(self, user_repository: IUserRepository) -> None:
        self._user_repo = user_repository

    def get_user(self, user_id: UUID | str) -> User:
        user = self._user_repo.get_by_id(str(user_id))
        if not user:
            raise UserNotFound(f"User {user_id} not found.")
        return user

    def get_actor(self, user_id: UUID | str) -> ActorDTO:
        """Resolve *user_id* to an ``ActorDTO``.

        Raises:
            UserNotFound: the id is unknown.
        """
        return ActorDTO.from_entity(self.get_user(user_id))

    def require_role(self, user_id: UUID | str, *roles: Role) -> ActorDTO:
        """Resolve *user_id* and check it holds one of *roles*.

        Raises:
            UserNotFound: the id is unknown.
            InvalidActorRole: the user holds another role.
        """
        actor = self.get_actor(user_id)
        if actor.role not in roles:
            logger.warning(
                "user.role_rejected",
                user_id=str(user_id),
                role=actor.role,
                expected=[str(r) for r in roles],
            )
            raise InvalidActorRole(
                f"User {user_id} is a {actor.role}, expected "
                f"{' or '.join(str(r) for r in roles)}."
            )
        return actor

    def list_distributors(self) -> List[User]:
        return self._user_repo.list_by_roles([Role.DISTRIBUTOR])

    def list_staff(self) -> List[User]:
        """All non-admin users (salespeople and distributors)."""
        return self._user_repo.list_by_roles([Role.SALESPERSON, Role.DISTRIBUTOR])

    def get_system_actor(self) -> ActorDTO:
        user = self._user_repo.get_or_create_system_user(
            settings.TIMELINE_SYSTEM_ACTOR_USERNAME
        )
        return ActorDTO.from_entity(user)
