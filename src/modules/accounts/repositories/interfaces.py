"""User repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Iterable, List

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.accounts.models import User


class IUserRepository(IRepository["User"]):
    @abstractmethod
    def list_by_roles(self, roles: Iterable[str]) -> List[User]:
        """Return active users holding any of *roles*."""

    @abstractmethod
    def get_or_create_system_user(self, username: str) -> User:
        """Return the designated system actor, creating it on first use."""
