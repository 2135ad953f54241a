import logging
import threading
from typing import Callable, Iterable, Optional

from .events import ChangeEvent, ChangeType
from .feed import ChangeFeed

logger = logging.getLogger(__name__)


class LiveQueryChannel:
    """
    Subscription to one table (optionally narrowed to one foreign key) that
    runs `on_change` whenever a matching row is inserted, updated or deleted.

    Events arriving while `on_change` is still running are collapsed into a
    single follow-up run, so a burst of writes costs at most one extra fetch
    and fetches never overlap on the same channel.
    """

    def __init__(
        self,
        feed: ChangeFeed,
        table: str,
        on_change: Callable[[], None],
        filter: Optional[dict] = None,
        events: Iterable[ChangeType] = None
    ):
        self.table = table
        self.filter = dict(filter) if filter else None
        self._on_change = on_change
        self._lock = threading.Lock()
        self._running = False
        self._pending = False
        self._closed = False
        self._subscription = feed.subscribe(table, self._notify, filter=self.filter, events=events)
        logger.debug("Opened channel on %s filter=%s", table, self.filter)

    @property
    def closed(self) -> bool:
        return self._closed

    def _notify(self, event: ChangeEvent):
        with self._lock:
            if self._closed:
                return
            if self._running:
                self._pending = True
                return
            self._running = True

        while True:
            try:
                self._on_change()
            except Exception:
                # The observer keeps its last good state; nothing is retried.
                logger.exception("Refresh after %s change on %s failed", event.type.value, self.table)

            with self._lock:
                if self._closed or not self._pending:
                    self._running = False
                    return
                self._pending = False

    def close(self):
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._pending = False
        self._subscription.unsubscribe()
        logger.debug("Closed channel on %s filter=%s", self.table, self.filter)


def open_channel(
    feed: ChangeFeed,
    table: str,
    on_change: Callable[[], None],
    filter: Optional[dict] = None,
    events: Iterable[ChangeType] = None
) -> LiveQueryChannel:
    """Open a channel; the returned object is also its close handle."""
    return LiveQueryChannel(feed, table, on_change, filter=filter, events=events)
