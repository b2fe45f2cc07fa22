"""Order domain constants.

Defines status choices and the forward-only, single-step status
transitions of the order state machine.  Payment status is independent
of delivery status and may toggle at any time.
"""

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "Pending", "Pending"
    DISPATCHED = "Dispatched", "Dispatched"
    DELIVERED = "Delivered", "Delivered"


class PaymentStatus(models.TextChoices):
    UNPAID = "Unpaid", "Unpaid"
    PAID = "Paid", "Paid"


class OrderEventType(models.TextChoices):
    CREATED = "created", "Created"
    ASSIGNED = "assigned", "Assigned"
    STATUS_UPDATED = "status_updated", "Status updated"
    PAYMENT_UPDATED = "payment_updated", "Payment updated"


VALID_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.PENDING: {OrderStatus.DISPATCHED},
    OrderStatus.DISPATCHED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
}

NEXT_STATUS: dict[str, str | None] = {
    OrderStatus.PENDING: OrderStatus.DISPATCHED,
    OrderStatus.DISPATCHED: OrderStatus.DELIVERED,
    OrderStatus.DELIVERED: None,
}

TERMINAL_STATES: set[str] = {OrderStatus.DELIVERED}

EVENT_MESSAGES: dict[str, str] = {
    OrderEventType.CREATED: "Order created",
    OrderEventType.ASSIGNED: "Assigned to {name}",
    OrderEventType.STATUS_UPDATED: "Status changed to {status}",
    OrderEventType.PAYMENT_UPDATED: "Payment marked {payment_status}",
}

TIMELINE_CHANNEL = "orders.{order_id}.events"
