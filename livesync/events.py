from enum import Enum
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional
import json


class ChangeType(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


ALL_CHANGES = frozenset(ChangeType)


@dataclass
class ChangeEvent:
    """
    Notification that something changed in a table.

    `record` only carries the keys needed for filtering (id, foreign keys,
    status). `previous` holds the same keys as they were before an update,
    so a row leaving a filtered set still notifies that set's subscribers.
    Subscribers must not treat either as the row's contents; they re-fetch.
    """
    table: str
    type: ChangeType
    record: dict = None
    previous: dict = None
    timestamp: str = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = datetime.now(timezone.utc).isoformat()
        if self.record is None:
            self.record = {}
        if self.previous is None:
            self.previous = {}

    def matches(self, filter: Optional[dict]) -> bool:
        if not filter:
            return True
        return _matches(self.record, filter) or (
            bool(self.previous) and _matches(self.previous, filter)
        )

    def to_dict(self) -> dict:
        return {
            "table": self.table,
            "type": self.type.value if isinstance(self.type, ChangeType) else self.type,
            "record": self.record,
            "previous": self.previous,
            "timestamp": self.timestamp
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: dict) -> "ChangeEvent":
        return cls(
            table=data["table"],
            type=ChangeType(data["type"]),
            record=data.get("record", {}),
            previous=data.get("previous", {}),
            timestamp=data.get("timestamp")
        )

    @classmethod
    def from_json(cls, json_str: str) -> "ChangeEvent":
        return cls.from_dict(json.loads(json_str))


def _matches(values: dict, filter: dict) -> bool:
    for key, expected in filter.items():
        if str(values.get(key)) != str(expected):
            return False
    return True


def insert_event(table: str, record: dict) -> ChangeEvent:
    return ChangeEvent(table=table, type=ChangeType.INSERT, record=record)


def update_event(table: str, record: dict, previous: dict = None) -> ChangeEvent:
    return ChangeEvent(table=table, type=ChangeType.UPDATE, record=record, previous=previous)


def delete_event(table: str, record: dict) -> ChangeEvent:
    return ChangeEvent(table=table, type=ChangeType.DELETE, record=record)
