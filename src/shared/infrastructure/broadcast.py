"""Live broadcast channels for pushing committed facts to subscribers.

Two backends share one contract:

* ``InMemoryBroadcaster`` keeps a ``queue.Queue`` per subscription inside
  the current process (development and tests).
* ``RedisBroadcaster`` uses Redis pub/sub so every web worker sees
  messages published by any other worker.

Delivery is at-most-once per subscription: a subscriber only receives
messages published while it is subscribed, and nothing is replayed after
``cancel()``.  Publishing never waits on subscribers.
"""

from __future__ import annotations

import json
import queue
import threading
import time
from abc import ABC, abstractmethod
from functools import lru_cache
from typing import Any, Dict, Iterator, List, Optional

import redis
import structlog
from django.conf import settings

logger = structlog.get_logger(__name__)

Message = Dict[str, Any]


class Subscription(ABC):
    """Cancellable handle over one channel.

    Iterating yields messages lazily and without end until ``cancel()`` is
    called (from any thread).  ``next_message`` offers a bounded wait.
    """

    poll_interval: float = 0.5

    def __init__(self, channel: str) -> None:
        self.channel = channel
        self._cancelled = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        if self._cancelled.is_set():
            return
        self._cancelled.set()
        self._close()
        logger.info("broadcast.unsubscribed", channel=self.channel)

    @abstractmethod
    def next_message(self, timeout: Optional[float] = None) -> Optional[Message]:
        """Return the next message, or ``None`` on timeout or cancellation."""

    @abstractmethod
    def _close(self) -> None: ...

    def __iter__(self) -> Iterator[Message]:
        while not self.cancelled:
            message = self.next_message(timeout=self.poll_interval)
            if message is not None:
                yield message

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.cancel()


class Broadcaster(ABC):
    @abstractmethod
    def publish(self, channel: str, message: Message) -> None: ...

    @abstractmethod
    def subscribe(self, channel: str) -> Subscription: ...

    @abstractmethod
    def ping(self) -> bool: ...


# ---------------------------------------------------------------------------
# In-memory backend
# ---------------------------------------------------------------------------


class _QueueSubscription(Subscription):
    def __init__(self, broadcaster: InMemoryBroadcaster, channel: str) -> None:
        super().__init__(channel)
        self._broadcaster = broadcaster
        self.queue: queue.Queue[Optional[Message]] = queue.Queue()

    def next_message(self, timeout: Optional[float] = None) -> Optional[Message]:
        if self.cancelled:
            return None
        try:
            return self.queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def _close(self) -> None:
        self._broadcaster._detach(self)
        # Wake a reader blocked in next_message(timeout=None)
        self.queue.put_nowait(None)


class InMemoryBroadcaster(Broadcaster):
    """Process-local fan-out over ``queue.Queue`` instances."""

    def __init__(self) -> None:
        self._subscriptions: Dict[str, List[_QueueSubscription]] = {}
        self._lock = threading.Lock()

    def publish(self, channel: str, message: Message) -> None:
        with self._lock:
            targets = list(self._subscriptions.get(channel, []))
        for subscription in targets:
            subscription.queue.put(message)
        logger.debug("broadcast.published", channel=channel, receivers=len(targets))

    def subscribe(self, channel: str) -> Subscription:
        subscription = _QueueSubscription(self, channel)
        with self._lock:
            self._subscriptions.setdefault(channel, []).append(subscription)
        logger.info("broadcast.subscribed", channel=channel, backend="memory")
        return subscription

    def subscriber_count(self, channel: str) -> int:
        with self._lock:
            return len(self._subscriptions.get(channel, []))

    def ping(self) -> bool:
        return True

    def _detach(self, subscription: _QueueSubscription) -> None:
        with self._lock:
            subscribers = self._subscriptions.get(subscription.channel, [])
            if subscription in subscribers:
                subscribers.remove(subscription)
            if not subscribers:
                self._subscriptions.pop(subscription.channel, None)


# ---------------------------------------------------------------------------
# Redis backend
# ---------------------------------------------------------------------------


class _RedisSubscription(Subscription):
    def __init__(self, client: redis.Redis, channel: str) -> None:
        super().__init__(channel)
        self._pubsub = client.pubsub(ignore_subscribe_messages=True)
        self._pubsub.subscribe(channel)

    def next_message(self, timeout: Optional[float] = None) -> Optional[Message]:
        # None blocks until a message arrives or the subscription is cancelled
        deadline = None if timeout is None else time.monotonic() + timeout
        while not self.cancelled:
            wait = self.poll_interval
            if deadline is not None:
                wait = max(0.0, min(wait, deadline - time.monotonic()))
            raw = self._pubsub.get_message(timeout=wait)
            if raw is not None and raw.get("type") == "message":
                return self._decode(raw["data"])
            if deadline is not None and time.monotonic() >= deadline:
                return None
        return None

    @staticmethod
    def _decode(data: Any) -> Message:
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        return json.loads(data)

    def _close(self) -> None:
        try:
            self._pubsub.unsubscribe(self.channel)
        finally:
            self._pubsub.close()


class RedisBroadcaster(Broadcaster):
    """Redis pub/sub fan-out shared by every worker process."""

    def __init__(self, url: str, socket_timeout: Optional[float] = None) -> None:
        self._client = redis.Redis.from_url(url, socket_timeout=socket_timeout)

    def publish(self, channel: str, message: Message) -> None:
        receivers = self._client.publish(channel, json.dumps(message))
        logger.debug("broadcast.published", channel=channel, receivers=receivers)

    def subscribe(self, channel: str) -> Subscription:
        subscription = _RedisSubscription(self._client, channel)
        logger.info("broadcast.subscribed", channel=channel, backend="redis")
        return subscription

    def ping(self) -> bool:
        try:
            return bool(self._client.ping())
        except redis.RedisError:
            return False


@lru_cache(maxsize=1)
def get_broadcaster() -> Broadcaster:
    """Return the process-wide broadcaster selected by settings."""
    backend = getattr(settings, "TIMELINE_BROADCAST_BACKEND", "memory")
    if backend == "redis":
        return RedisBroadcaster(
            settings.TIMELINE_BROADCAST_URL,
            socket_timeout=settings.STORE_TIMEOUT_SECONDS,
        )
    if backend == "memory":
        return InMemoryBroadcaster()
    raise ValueError(f"Unknown TIMELINE_BROADCAST_BACKEND: {backend!r}")
