"""Actor roles.

The role is decided once, at the directory boundary (the ``User`` row),
and travels as this string enum everywhere downstream.
"""

from django.db import models


class Role(models.TextChoices):
    ADMIN = "Admin", "Admin"
    SALESPERSON = "Salesperson", "Salesperson"
    DISTRIBUTOR = "Distributor", "Distributor"
