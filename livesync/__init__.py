"""
Live data synchronization for tournament screens.

Pieces:
- ChangeFeed: fan-out of table change events (local or Redis pub/sub)
- LiveQueryChannel: re-runs a fetch whenever a watched table changes
- Aggregator: pure derived metrics (counts, win rate, monthly activity)
- ViewBinding: fetch -> aggregate -> render state for one screen
"""
from .events import ChangeEvent, ChangeType
from .feed import ChangeFeed, LocalChangeFeed, RedisChangeFeed, Subscription
from .channel import LiveQueryChannel, open_channel
from .binding import ViewBinding, Watch

__all__ = [
    "ChangeEvent",
    "ChangeType",
    "ChangeFeed",
    "LocalChangeFeed",
    "RedisChangeFeed",
    "Subscription",
    "LiveQueryChannel",
    "open_channel",
    "ViewBinding",
    "Watch",
]
