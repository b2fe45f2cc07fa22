"""Cross-module exception kinds.

Module-specific exceptions subclass these so the API layer can map a
whole family (e.g. every "not found") to one HTTP status.
"""

from __future__ import annotations


class NotFoundError(Exception):
    """A referenced entity (order, user) does not exist."""


class RetryableError(Exception):
    """The store timed out or was unavailable; the operation may be retried."""
