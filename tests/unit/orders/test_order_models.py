"""Unit tests for Order / OrderEvent persistence rules."""

from __future__ import annotations

import pytest
from django.db import IntegrityError, transaction
from django.db.models import ProtectedError

from modules.orders.constants import OrderEventType, OrderStatus, PaymentStatus
from modules.orders.exceptions import ImmutableEventError
from modules.orders.models import Order, OrderEvent

pytestmark = pytest.mark.unit


@pytest.fixture()
def order(salesperson):
    return Order.objects.create(
        spa_name="Titan Spa",
        address="12 MG Road",
        product_name="Aroma Oil",
        quantity=3,
        salesperson=salesperson,
    )


class TestOrderModel:
    def test_defaults(self, order):
        assert order.status == OrderStatus.PENDING
        assert order.payment_status == PaymentStatus.UNPAID
        assert order.distributor is None
        assert order.idempotency_key is None

    def test_uuid7_primary_key(self, order):
        assert order.id.version == 7

    def test_quantity_must_be_positive(self, salesperson):
        with pytest.raises(IntegrityError), transaction.atomic():
            Order.objects.create(
                spa_name="Zero Spa",
                address="Nowhere",
                product_name="Nothing",
                quantity=0,
                salesperson=salesperson,
            )

    def test_str(self, order):
        assert str(order) == "Titan Spa / Aroma Oil x3 (Pending)"


class TestOrderEventImmutability:
    @pytest.fixture()
    def event(self, order, salesperson):
        event = OrderEvent(
            order=order,
            type=OrderEventType.CREATED,
            message="Order created",
            actor=salesperson,
            actor_role=salesperson.role,
        )
        event.save()
        return event

    def test_event_cannot_be_modified(self, event):
        event.message = "tampered"
        with pytest.raises(ImmutableEventError):
            event.save()
        event.refresh_from_db()
        assert event.message == "Order created"

    def test_event_cannot_be_deleted(self, event):
        with pytest.raises(ImmutableEventError):
            event.delete()
        assert OrderEvent.objects.filter(id=event.id).exists()

    def test_order_with_timeline_cannot_be_deleted(self, order, event):
        with pytest.raises(ProtectedError):
            order.delete()
