"""Background tasks of the orders module."""

import structlog
from celery import shared_task

from modules.accounts.repositories.django_repository import UserDjangoRepository
from modules.accounts.services import UserDirectory
from modules.orders.repositories import (
    OrderDjangoRepository,
    OrderEventDjangoRepository,
)
from modules.orders.timeline import TimelineBackfillService
from shared.domain.exceptions import RetryableError

logger = structlog.get_logger(__name__)


def build_backfill_service() -> TimelineBackfillService:
    return TimelineBackfillService(
        order_repository=OrderDjangoRepository(),
        event_repository=OrderEventDjangoRepository(),
        directory=UserDirectory(user_repository=UserDjangoRepository()),
    )


@shared_task(
    name="orders.backfill_timeline",
    autoretry_for=(RetryableError,),
    retry_backoff=True,
    max_retries=3,
)
def backfill_timeline():
    """Write the missing ``created`` event of every legacy order."""
    written = build_backfill_service().run()
    logger.info("backfill_timeline.executed", written=written)
    return {"status": "ok", "written": written}
