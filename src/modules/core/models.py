"""Abstract model bases.

``UUIDModel`` carries only a UUIDv7 key and suits append-only rows (timeline
events) that stamp their own ``created_at``.  ``TimestampedModel`` adds
creation and last-modification times for mutable rows such as orders.
"""

from __future__ import annotations

import uuid6
from django.db import models


class UUIDModel(models.Model):
    # Time-ordered keys keep inserts on the timeline table index-local
    id = models.UUIDField(primary_key=True, default=uuid6.uuid7, editable=False)

    class Meta:
        abstract = True


class TimestampedModel(UUIDModel):
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

    def save(self, *args, **kwargs) -> None:
        # auto_now only fires for fields that are written
        fields = kwargs.get("update_fields")
        if fields is not None and "updated_at" not in fields:
            kwargs["update_fields"] = [*fields, "updated_at"]
        super().save(*args, **kwargs)
