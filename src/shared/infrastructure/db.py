"""Store error translation.

Every store operation runs under a bounded lock/statement timeout (see
``config.database``).  When the backend gives up, Django raises
``OperationalError``; service methods decorated with
``translate_backend_errors`` surface that as ``RetryableError`` so callers
can tell "try again" apart from a rejected request.
"""

from __future__ import annotations

import functools
from typing import Any, Callable, TypeVar

import structlog
from django.db import InterfaceError, OperationalError

from shared.domain.exceptions import RetryableError

logger = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def translate_backend_errors(func: F) -> F:
    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except (OperationalError, InterfaceError) as exc:
            logger.warning(
                "store.operation_failed",
                operation=func.__qualname__,
                error=str(exc),
            )
            raise RetryableError(
                f"{func.__qualname__} did not complete, retry later."
            ) from exc

    return wrapper  # type: ignore[return-value]
