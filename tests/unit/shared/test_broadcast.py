"""Unit tests for the live broadcast backends."""

from __future__ import annotations

import json
import threading
import time
from unittest.mock import MagicMock, patch

import pytest
from django.test import override_settings

from shared.infrastructure.broadcast import (
    InMemoryBroadcaster,
    RedisBroadcaster,
    get_broadcaster,
)

pytestmark = pytest.mark.unit


class TestInMemoryBroadcaster:
    def test_subscriber_receives_messages_in_order(self):
        broadcaster = InMemoryBroadcaster()
        subscription = broadcaster.subscribe("orders.1.events")

        broadcaster.publish("orders.1.events", {"n": 1})
        broadcaster.publish("orders.1.events", {"n": 2})

        assert subscription.next_message(timeout=0.1) == {"n": 1}
        assert subscription.next_message(timeout=0.1) == {"n": 2}
        assert subscription.next_message(timeout=0.01) is None

    def test_channels_are_isolated(self):
        broadcaster = InMemoryBroadcaster()
        subscription = broadcaster.subscribe("orders.1.events")

        broadcaster.publish("orders.2.events", {"n": 1})

        assert subscription.next_message(timeout=0.01) is None

    def test_no_replay_of_earlier_messages(self):
        broadcaster = InMemoryBroadcaster()
        broadcaster.publish("orders.1.events", {"n": 1})

        subscription = broadcaster.subscribe("orders.1.events")

        assert subscription.next_message(timeout=0.01) is None

    def test_fan_out_to_every_subscriber(self):
        broadcaster = InMemoryBroadcaster()
        first = broadcaster.subscribe("orders.1.events")
        second = broadcaster.subscribe("orders.1.events")

        broadcaster.publish("orders.1.events", {"n": 1})

        assert first.next_message(timeout=0.1) == {"n": 1}
        assert second.next_message(timeout=0.1) == {"n": 1}

    def test_cancel_detaches_and_stops_delivery(self):
        broadcaster = InMemoryBroadcaster()
        subscription = broadcaster.subscribe("orders.1.events")

        subscription.cancel()
        broadcaster.publish("orders.1.events", {"n": 1})

        assert subscription.cancelled
        assert broadcaster.subscriber_count("orders.1.events") == 0
        assert subscription.next_message(timeout=0.01) is None

    def test_context_manager_cancels(self):
        broadcaster = InMemoryBroadcaster()
        with broadcaster.subscribe("orders.1.events") as subscription:
            assert broadcaster.subscriber_count("orders.1.events") == 1
        assert subscription.cancelled

    def test_iteration_ends_after_cancel_from_another_thread(self):
        broadcaster = InMemoryBroadcaster()
        subscription = broadcaster.subscribe("orders.1.events")
        subscription.poll_interval = 0.01
        received = []

        def consume():
            for message in subscription:
                received.append(message)

        consumer = threading.Thread(target=consume)
        consumer.start()
        broadcaster.publish("orders.1.events", {"n": 1})
        broadcaster.publish("orders.1.events", {"n": 2})
        for _ in range(200):
            if len(received) == 2:
                break
            time.sleep(0.01)
        subscription.cancel()
        consumer.join(timeout=2)

        assert not consumer.is_alive()
        assert received == [{"n": 1}, {"n": 2}]

    def test_blocking_read_returns_none_when_cancelled(self):
        subscription = InMemoryBroadcaster().subscribe("orders.1.events")
        result = []

        reader = threading.Thread(
            target=lambda: result.append(subscription.next_message(timeout=None))
        )
        reader.start()
        time.sleep(0.05)
        subscription.cancel()
        reader.join(timeout=2)

        assert not reader.is_alive()
        assert result == [None]


class TestRedisBroadcaster:
    @pytest.fixture()
    def client(self):
        with patch("shared.infrastructure.broadcast.redis.Redis.from_url") as from_url:
            yield from_url.return_value

    def test_publish_serializes_json(self, client):
        RedisBroadcaster("redis://localhost:6379/0").publish("c", {"n": 1})
        client.publish.assert_called_once_with("c", json.dumps({"n": 1}))

    def test_subscription_decodes_messages(self, client):
        pubsub = MagicMock()
        client.pubsub.return_value = pubsub
        pubsub.get_message.return_value = {"type": "message", "data": b'{"n": 1}'}

        subscription = RedisBroadcaster("redis://localhost:6379/0").subscribe("c")

        pubsub.subscribe.assert_called_once_with("c")
        assert subscription.next_message(timeout=0.1) == {"n": 1}

    def test_blocking_read_waits_for_a_message(self, client):
        pubsub = MagicMock()
        client.pubsub.return_value = pubsub
        pubsub.get_message.side_effect = [
            None,
            None,
            {"type": "message", "data": b'{"n": 2}'},
        ]
        subscription = RedisBroadcaster("redis://localhost:6379/0").subscribe("c")

        assert subscription.next_message(timeout=None) == {"n": 2}
        assert pubsub.get_message.call_count == 3
        for call in pubsub.get_message.call_args_list:
            assert call.kwargs["timeout"] == subscription.poll_interval

    def test_bounded_read_times_out(self, client):
        pubsub = MagicMock()
        client.pubsub.return_value = pubsub
        pubsub.get_message.return_value = None
        subscription = RedisBroadcaster("redis://localhost:6379/0").subscribe("c")

        assert subscription.next_message(timeout=0.05) is None

    def test_subscription_cancel_closes_pubsub(self, client):
        pubsub = MagicMock()
        client.pubsub.return_value = pubsub

        subscription = RedisBroadcaster("redis://localhost:6379/0").subscribe("c")
        subscription.cancel()

        pubsub.unsubscribe.assert_called_once_with("c")
        pubsub.close.assert_called_once()
        assert subscription.next_message(timeout=0.1) is None


class TestGetBroadcaster:
    def test_memory_backend(self):
        with override_settings(TIMELINE_BROADCAST_BACKEND="memory"):
            get_broadcaster.cache_clear()
            assert isinstance(get_broadcaster(), InMemoryBroadcaster)

    def test_unknown_backend_rejected(self):
        with override_settings(TIMELINE_BROADCAST_BACKEND="carrier-pigeon"):
            get_broadcaster.cache_clear()
            with pytest.raises(ValueError):
                get_broadcaster()
