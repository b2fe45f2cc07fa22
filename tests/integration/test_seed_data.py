from io import StringIO

import pytest
from django.core.management import call_command

from modules.accounts.models import User
from modules.orders.models import Order, OrderEvent

pytestmark = pytest.mark.integration


def test_seed_creates_users_and_orders_with_timelines():
    out = StringIO()

    call_command("seed_data", stdout=out)

    assert "Seed completed" in out.getvalue()
    assert User.objects.filter(username__in=["admin", "sales", "distributor"]).count() == 3
    assert Order.objects.count() == 6
    for order in Order.objects.all():
        assert OrderEvent.objects.filter(order=order, type="created").count() == 1


def test_seed_is_rerunnable():
    call_command("seed_data", stdout=StringIO())
    call_command("seed_data", stdout=StringIO())

    assert Order.objects.count() == 6
