"""Actor DTOs.

``ActorDTO`` is what the order core knows about a user: id and role, plus
name/email used only to enrich timeline output for display.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from modules.accounts.constants import Role

if TYPE_CHECKING:
    from modules.accounts.models import User


class ActorDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    role: Role
    name: str = ""
    email: str = ""

    @classmethod
    def from_entity(cls, user: User) -> ActorDTO:
        return cls(
            id=user.id,
            role=user.role,
            name=user.display_name,
            email=user.email or "",
        )
