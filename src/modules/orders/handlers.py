"""Event handlers for Orders domain events."""

from __future__ import annotations

import structlog

from modules.orders.constants import TIMELINE_CHANNEL
from modules.orders.events import OrderEventAppended
from shared.domain.bus import IEventHandler
from shared.infrastructure.broadcast import get_broadcaster

logger = structlog.get_logger(__name__)


class TimelineBroadcastHandler(IEventHandler[OrderEventAppended]):
    """Push committed timeline entries to live subscribers of the order."""

    def handle(self, event: OrderEventAppended) -> None:
        channel = TIMELINE_CHANNEL.format(order_id=event.aggregate_id)
        get_broadcaster().publish(channel, event.payload)
        logger.info(
            "timeline.event_broadcast",
            order_id=str(event.aggregate_id),
            event_id=event.payload.get("id"),
        )


timeline_broadcast_handler = TimelineBroadcastHandler()
