"""Actor directory model.

``User`` replaces Django's default user so every actor carries exactly one
``role``.  Credentials (password hashing, login) stay with Django auth.
"""

from __future__ import annotations

import uuid6
from django.contrib.auth.models import AbstractUser, UserManager
from django.db import models

from modules.accounts.constants import Role


class DirectoryUserManager(UserManager):
    def create_superuser(self, username, email=None, password=None, **extra_fields):
        extra_fields.setdefault("role", Role.ADMIN)
        return super().create_superuser(username, email, password, **extra_fields)


class User(AbstractUser):
    id = models.UUIDField(primary_key=True, default=uuid6.uuid7, editable=False)
    name: models.CharField = models.CharField(max_length=150, blank=True, default="")
    role: models.CharField = models.CharField(
        max_length=20,
        choices=Role.choices,
        default=Role.SALESPERSON,
    )

    objects = DirectoryUserManager()

    class Meta:
        db_table = "users"
        ordering = ["username"]
        indexes = [
            models.Index(fields=["role"], name="users_role_idx"),
        ]

    @property
    def display_name(self) -> str:
        return self.name or self.get_full_name() or self.username

    @property
    def is_admin_role(self) -> bool:
        return self.role == Role.ADMIN

    def __str__(self) -> str:
        return f"{self.display_name} ({self.role})"
