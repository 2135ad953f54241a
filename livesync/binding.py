import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from .channel import LiveQueryChannel, open_channel
from .feed import ChangeFeed
from .state_machine import BindingStateMachine, BindingState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Watch:
    """A table (and optional single-key filter) whose changes invalidate a binding."""
    table: str
    filter: Optional[dict] = None


class ViewBinding:
    """
    Wires fetch -> aggregate -> render state for one screen.

    The rendering side only ever sees `snapshot()` (or receives it through
    `on_render`): `{"data", "loading", "error"}`. Each refresh replaces
    `data` wholesale. Once closed, late fetch results are discarded and no
    further state changes happen.
    """

    def __init__(
        self,
        name: str,
        feed: ChangeFeed,
        fetch: Callable[[], Any],
        watches: List[Watch],
        aggregate: Callable[[Any], Any] = None,
        on_render: Callable[[dict], None] = None
    ):
        self.name = name
        self._feed = feed
        self._fetch = fetch
        self._aggregate = aggregate
        self._watches = list(watches)
        self._on_render = on_render
        self._lock = threading.RLock()
        self._machine = BindingStateMachine()
        self._channels: List[LiveQueryChannel] = []
        self._in_flight = 0
        self._stale = False
        self._data = None
        self._error: Optional[str] = None

    @property
    def state(self) -> BindingState:
        return self._machine.state

    @property
    def closed(self) -> bool:
        return self._machine.state == BindingState.CLOSED

    def history(self) -> List[tuple]:
        return self._machine.get_history()

    def snapshot(self) -> dict:
        with self._lock:
            return {
                "data": self._data,
                "loading": self._in_flight > 0 or self._machine.state == BindingState.IDLE,
                "error": self._error
            }

    def mount(self) -> "ViewBinding":
        """Start listening for changes, then run the initial fetch."""
        with self._lock:
            if self.closed or self._channels:
                return self
            for watch in self._watches:
                self._channels.append(
                    open_channel(self._feed, watch.table, self._on_change, filter=watch.filter)
                )
        self.refresh()
        return self

    def refresh(self):
        """Fetch now, then once more for every batch of changes seen meanwhile."""
        while True:
            self._refresh_once()
            with self._lock:
                if self.closed or not self._stale:
                    return
                self._stale = False

    def _on_change(self):
        with self._lock:
            if self.closed:
                return
            if self._in_flight:
                # The running fetch may have read rows from before this change
                self._stale = True
                return
        self.refresh()

    def _refresh_once(self):
        with self._lock:
            if self.closed:
                return
            self._machine.transition("fetch")
            self._in_flight += 1
        self._emit()

        try:
            rows = self._fetch()
            data = self._aggregate(rows) if self._aggregate else rows
        except Exception as e:
            logger.warning("Refreshing %s failed: %s", self.name, e)
            with self._lock:
                if self.closed:
                    return
                self._in_flight -= 1
                self._error = str(e) or type(e).__name__
                if self._machine.state == BindingState.LOADING and self._in_flight == 0:
                    self._machine.transition("fail")
                    self._machine.transition("recover")
            self._emit()
            return

        with self._lock:
            if self.closed:
                logger.debug("Discarding %s result fetched after close", self.name)
                return
            self._in_flight -= 1
            self._data = data
            self._error = None
            if self._machine.state == BindingState.LOADING and self._in_flight == 0:
                self._machine.transition("resolve")
        self._emit()

    def close(self):
        with self._lock:
            if self.closed:
                return
            self._machine.transition("close")
            channels, self._channels = self._channels, []
        for channel in channels:
            channel.close()

    def _emit(self):
        if self._on_render is None or self.closed:
            return
        try:
            self._on_render(self.snapshot())
        except Exception:
            logger.exception("Render callback for %s failed", self.name)
