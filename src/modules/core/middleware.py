import re
import time
from contextvars import ContextVar
from typing import Callable

import structlog
import uuid6
from django.http import HttpRequest, HttpResponse

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")

logger = structlog.get_logger()

_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


class CorrelationIdMiddleware:
    """Binds a correlation ID to every log line of a request.

    Reuses the incoming X-Request-ID header when it looks like an id,
    otherwise generates a UUIDv7.  The ID lives in a ContextVar and in
    structlog's contextvars, and is echoed back in the X-Request-ID
    response header.  ``request_finished`` also carries the authenticated
    actor, so an order's timeline entries can be traced to the request
    that wrote them.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        incoming = request.META.get("HTTP_X_REQUEST_ID", "")
        cid = incoming if _VALID_REQUEST_ID.match(incoming) else str(uuid6.uuid7())
        correlation_id_var.set(cid)

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(correlation_id=cid)

        logger.info(
            "request_started",
            method=request.method,
            path=request.get_full_path(),
        )

        start = time.monotonic()
        response = self.get_response(request)

        user = getattr(request, "user", None)
        logger.info(
            "request_finished",
            method=request.method,
            path=request.get_full_path(),
            status_code=response.status_code,
            duration_ms=round((time.monotonic() - start) * 1000, 2),
            user_id=str(user.pk) if user and user.is_authenticated else None,
            role=getattr(user, "role", None),
        )

        response["X-Request-ID"] = cid
        return response
