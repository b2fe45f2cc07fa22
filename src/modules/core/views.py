"""Liveness endpoint reporting the stores the order service depends on."""

import time
from typing import Any, Callable, Dict

import structlog
from django.core.cache import cache
from django.db import connections
from django.http import HttpRequest, JsonResponse
from django.utils import timezone

from shared.infrastructure.broadcast import get_broadcaster

logger = structlog.get_logger()

_CACHE_CHECK_KEY = "_health_check"


def _ping_database() -> None:
    conn = connections["default"]
    conn.ensure_connection()
    with conn.cursor() as cursor:
        cursor.execute("SELECT 1")
        cursor.fetchone()


def _ping_cache() -> None:
    cache.set(_CACHE_CHECK_KEY, "ok", 10)
    if cache.get(_CACHE_CHECK_KEY) != "ok":
        raise ConnectionError("cache read-back mismatch")


def _check_store(name: str, ping: Callable[[], None]) -> Dict[str, Any]:
    start = time.monotonic()
    try:
        ping()
    except Exception:
        logger.exception("health.store_down", store=name)
        return {"status": "down"}
    return {
        "status": "up",
        "response_time_ms": round((time.monotonic() - start) * 1000, 2),
    }


def health_check(request: HttpRequest) -> JsonResponse:
    services: Dict[str, Dict[str, Any]] = {
        "database": _check_store("database", _ping_database),
        "cache": _check_store("cache", _ping_cache),
    }
    healthy = all(entry["status"] == "up" for entry in services.values())

    # Reported only; live timeline delivery is best effort
    services["broadcast"] = {"status": "up" if get_broadcaster().ping() else "down"}

    verdict = "healthy" if healthy else "unhealthy"
    logger.info("health.checked", status=verdict)
    return JsonResponse(
        {
            "status": verdict,
            "timestamp": timezone.now().isoformat(),
            "services": services,
        },
        status=200 if healthy else 503,
    )
