import os
import logging
import threading
import uuid
from typing import Callable, Dict, Iterable, Optional

import redis

from .events import ChangeEvent, ChangeType, ALL_CHANGES

logger = logging.getLogger(__name__)


class Subscription:
    """Handle for one callback registered on a table's change stream."""

    def __init__(
        self,
        feed: "ChangeFeed",
        table: str,
        callback: Callable[[ChangeEvent], None],
        filter: Optional[dict] = None,
        events: Iterable[ChangeType] = None
    ):
        self.id = uuid.uuid4().hex
        self.table = table
        self.filter = dict(filter) if filter else None
        self.events = frozenset(ChangeType(e) for e in events) if events else ALL_CHANGES
        self._feed = feed
        self._callback = callback
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def wants(self, event: ChangeEvent) -> bool:
        return (
            self._active
            and event.table == self.table
            and event.type in self.events
            and event.matches(self.filter)
        )

    def deliver(self, event: ChangeEvent):
        if self.wants(event):
            self._callback(event)

    def unsubscribe(self):
        if not self._active:
            return
        self._active = False
        self._feed._remove(self)


class ChangeFeed:
    """
    Fan-out of table change events to subscribers.

    Filters are matched here, before a callback runs, so subscribers only
    hear about rows inside their filter.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._subscriptions: Dict[str, Dict[str, Subscription]] = {}

    def publish(self, event: ChangeEvent):
        raise NotImplementedError

    def subscribe(
        self,
        table: str,
        callback: Callable[[ChangeEvent], None],
        filter: Optional[dict] = None,
        events: Iterable[ChangeType] = None
    ) -> Subscription:
        sub = Subscription(self, table, callback, filter=filter, events=events)
        with self._lock:
            first = table not in self._subscriptions
            self._subscriptions.setdefault(table, {})[sub.id] = sub
            if first:
                self._on_first_subscriber(table)
        return sub

    def subscriber_count(self, table: str = None) -> int:
        with self._lock:
            if table is not None:
                return len(self._subscriptions.get(table, {}))
            return sum(len(subs) for subs in self._subscriptions.values())

    def ping(self) -> bool:
        return True

    def close(self):
        with self._lock:
            subs = [s for table_subs in self._subscriptions.values() for s in table_subs.values()]
        for sub in subs:
            sub.unsubscribe()

    def _remove(self, sub: Subscription):
        with self._lock:
            table_subs = self._subscriptions.get(sub.table)
            if not table_subs:
                return
            table_subs.pop(sub.id, None)
            if not table_subs:
                del self._subscriptions[sub.table]
                self._on_last_unsubscribed(sub.table)

    def _dispatch(self, event: ChangeEvent):
        with self._lock:
            subs = list(self._subscriptions.get(event.table, {}).values())
        for sub in subs:
            try:
                sub.deliver(event)
            except Exception:
                logger.exception("Error handling %s event on %s", event.type.value, event.table)

    def _on_first_subscriber(self, table: str):
        pass

    def _on_last_unsubscribed(self, table: str):
        pass


class LocalChangeFeed(ChangeFeed):
    """In-process feed: events are delivered synchronously in the publisher's thread."""

    def publish(self, event: ChangeEvent):
        self._dispatch(event)


class RedisChangeFeed(ChangeFeed):
    """
    Feed backed by Redis pub/sub, one channel per table.

    Every process publishing to the same Redis sees every other process's
    writes. Messages are handled on a single listener thread.
    """

    def __init__(self, redis_url: str = None, prefix: str = "arena", client: redis.Redis = None):
        super().__init__()
        self.redis_url = redis_url or os.getenv('REDIS_URL', 'redis://localhost:6379')
        self.prefix = prefix
        self.redis = client or redis.from_url(
            self.redis_url,
            decode_responses=True,
            socket_connect_timeout=5
        )
        self._pubsub = None
        self._listener = None

    def channel_for(self, table: str) -> str:
        return f"{self.prefix}:table:{table}:changes"

    def ping(self) -> bool:
        try:
            return bool(self.redis.ping())
        except redis.RedisError as e:
            logger.warning("Redis ping failed: %s", e)
            return False

    def publish(self, event: ChangeEvent):
        self.redis.publish(self.channel_for(event.table), event.to_json())

    def _on_first_subscriber(self, table: str):
        with self._lock:
            if self._pubsub is None:
                self._pubsub = self.redis.pubsub(ignore_subscribe_messages=True)
            self._pubsub.subscribe(**{self.channel_for(table): self._message_handler})
            if self._listener is None:
                self._listener = self._pubsub.run_in_thread(sleep_time=0.1, daemon=True)
                logger.info("Change feed listener started on %s", self.redis_url)

    def _on_last_unsubscribed(self, table: str):
        with self._lock:
            if self._pubsub is not None:
                self._pubsub.unsubscribe(self.channel_for(table))

    def _message_handler(self, message):
        if message['type'] != 'message':
            return
        try:
            event = ChangeEvent.from_json(message['data'])
        except (ValueError, KeyError) as e:
            logger.warning("Dropping malformed change event on %s: %s", message.get('channel'), e)
            return
        self._dispatch(event)

    def close(self):
        super().close()
        with self._lock:
            if self._listener is not None:
                self._listener.stop()
                self._listener = None
            if self._pubsub is not None:
                self._pubsub.close()
                self._pubsub = None
