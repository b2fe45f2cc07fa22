"""Role-based DRF permissions.

Role gating lives at the API edge; the services below trust their caller.
"""

from __future__ import annotations

from typing import Type

from rest_framework.permissions import BasePermission

from modules.accounts.constants import Role


class HasRole(BasePermission):
    """Allow authenticated users whose ``role`` is in ``allowed_roles``."""

    allowed_roles: frozenset[str] = frozenset()
    message = "Your role is not allowed to perform this action."

    def has_permission(self, request, view) -> bool:
        user = request.user
        if not (user and user.is_authenticated):
            return False
        return getattr(user, "role", None) in self.allowed_roles


def role_permission(*roles: Role) -> Type[HasRole]:
    """Build a ``HasRole`` subclass restricted to *roles*."""
    names = frozenset(str(role) for role in roles)
    label = "Or".join(role.name.title() for role in roles)
    return type(f"Is{label}", (HasRole,), {"allowed_roles": names})


IsAdmin = role_permission(Role.ADMIN)
IsSalespersonOrAdmin = role_permission(Role.SALESPERSON, Role.ADMIN)
IsDistributorOrAdmin = role_permission(Role.DISTRIBUTOR, Role.ADMIN)
