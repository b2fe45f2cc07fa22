"""Django ORM implementation of the User repository.

Follows the Null Object convention: look-ups return ``None`` for unknown
or malformed ids and the service decides what that means.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

import structlog
from django.core.exceptions import ValidationError

from modules.accounts.constants import Role
from modules.accounts.models import User
from modules.accounts.repositories.interfaces import IUserRepository

logger = structlog.get_logger(__name__)


class UserDjangoRepository(IUserRepository):
    def get_by_id(self, id: str) -> Optional[User]:
        try:
            return User.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[User]:
        queryset = User.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def list_by_roles(self, roles: Iterable[str]) -> List[User]:
        return list(User.objects.filter(role__in=list(roles), is_active=True))

    def save(self, entity: User) -> User:
        entity.save()
        return entity

    def get_or_create_system_user(self, username: str) -> User:
        user, created = User.objects.get_or_create(
            username=username,
            defaults={
                "name": "System",
                "role": Role.ADMIN,
                "is_active": False,
            },
        )
        if created:
            user.set_unusable_password()
            user.save(update_fields=["password"])
            logger.info("user.system_actor_created", user_id=str(user.id))
        return user
