"""Unit tests for the order status state machine."""

from __future__ import annotations

import pytest

from modules.orders.constants import (
    NEXT_STATUS,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    OrderStatus,
)
from modules.orders.models import Order

pytestmark = pytest.mark.unit


class TestTransitionTable:
    def test_every_status_has_an_entry(self):
        assert set(VALID_TRANSITIONS) == set(OrderStatus.values)

    def test_transitions_are_single_forward_steps(self):
        assert VALID_TRANSITIONS[OrderStatus.PENDING] == {OrderStatus.DISPATCHED}
        assert VALID_TRANSITIONS[OrderStatus.DISPATCHED] == {OrderStatus.DELIVERED}
        assert VALID_TRANSITIONS[OrderStatus.DELIVERED] == set()

    def test_next_status_matches_transition_table(self):
        for current, allowed in VALID_TRANSITIONS.items():
            expected = next(iter(allowed)) if allowed else None
            assert NEXT_STATUS[current] == expected

    def test_only_delivered_is_terminal(self):
        assert TERMINAL_STATES == {OrderStatus.DELIVERED}


class TestOrderCanTransition:
    @pytest.mark.parametrize(
        "current,target",
        [
            (OrderStatus.PENDING, OrderStatus.DISPATCHED),
            (OrderStatus.DISPATCHED, OrderStatus.DELIVERED),
        ],
    )
    def test_forward_step_allowed(self, current, target):
        assert Order(status=current).can_transition_to(target)

    @pytest.mark.parametrize(
        "current,target",
        [
            (OrderStatus.PENDING, OrderStatus.DELIVERED),
            (OrderStatus.PENDING, OrderStatus.PENDING),
            (OrderStatus.DISPATCHED, OrderStatus.PENDING),
            (OrderStatus.DELIVERED, OrderStatus.DISPATCHED),
            (OrderStatus.DELIVERED, OrderStatus.PENDING),
            (OrderStatus.PENDING, "Cancelled"),
        ],
    )
    def test_skip_backward_and_unknown_rejected(self, current, target):
        assert not Order(status=current).can_transition_to(target)

    def test_terminal_and_next_status(self):
        order = Order(status=OrderStatus.DELIVERED)
        assert order.is_terminal
        assert order.next_status is None
        assert Order(status=OrderStatus.PENDING).next_status == OrderStatus.DISPATCHED
