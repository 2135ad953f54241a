import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from sqlalchemy.exc import SQLAlchemyError

from livesync.events import ChangeEvent, ChangeType, insert_event, update_event, delete_event
from livesync.feed import ChangeFeed, Subscription
from .models import db, Tournament, Registration, Match, LeaderboardEntry, FeaturedGame, SiteSettings

logger = logging.getLogger(__name__)

TABLES = {
    'tournaments': Tournament,
    'registrations': Registration,
    'matches': Match,
    'leaderboard': LeaderboardEntry,
    'featured_games': FeaturedGame,
    'site_settings': SiteSettings,
}


class StoreError(Exception):
    """A backing store call failed; the caller keeps whatever state it had."""

    def __init__(self, operation: str, table: str, cause: Exception = None):
        self.operation = operation
        self.table = table
        self.cause = cause
        super().__init__(f"{operation} on {table} failed: {cause}")


class BackingStore:
    """
    Row-level data access used by every service and screen.

    Rows go in and come out as plain dicts. Each committed write publishes
    one change event per affected row on the feed; the event only carries
    the model's CHANGE_KEYS, never the full row.
    """

    def __init__(self, feed: ChangeFeed):
        self.feed = feed

    # Reads
    def select(
        self,
        table: str,
        filters: Dict[str, Any] = None,
        order_by: Union[str, Iterable[str]] = None,
        limit: int = None
    ) -> List[Dict[str, Any]]:
        """Rows matching `filters`; `order_by` names columns, '-' prefix for descending."""
        model = self._model(table)
        try:
            query = self._filtered(model, filters)
            for column in _ordering(order_by):
                if column.startswith('-'):
                    query = query.order_by(self._column(model, column[1:]).desc())
                else:
                    query = query.order_by(self._column(model, column).asc())
            if limit:
                query = query.limit(limit)
            return [row.to_dict() for row in query.all()]
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StoreError('select', table, e) from e

    def get(self, table: str, row_id: Any) -> Optional[Dict[str, Any]]:
        rows = self.select(table, {'id': row_id}, limit=1)
        return rows[0] if rows else None

    def count(self, table: str, filters: Dict[str, Any] = None) -> int:
        model = self._model(table)
        try:
            return self._filtered(model, filters).count()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StoreError('count', table, e) from e

    # Writes
    def insert(self, table: str, rows: Union[Dict[str, Any], List[Dict[str, Any]]]) -> List[Dict[str, Any]]:
        model = self._model(table)
        if isinstance(rows, dict):
            rows = [rows]
        try:
            objs = [model(**row) for row in rows]
            db.session.add_all(objs)
            db.session.commit()
            inserted = [obj.to_dict() for obj in objs]
            events = [insert_event(table, _change_keys(obj)) for obj in objs]
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StoreError('insert', table, e) from e
        self._publish(events)
        return inserted

    def update(self, table: str, patch: Dict[str, Any], filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        model = self._model(table)
        if not filters:
            raise ValueError("update requires at least one filter")
        for column in patch:
            self._column(model, column)
        try:
            objs = self._filtered(model, filters).all()
            previous = [_change_keys(obj) for obj in objs]
            for obj in objs:
                for column, value in patch.items():
                    setattr(obj, column, value)
            db.session.commit()
            updated = [obj.to_dict() for obj in objs]
            events = [update_event(table, _change_keys(obj), prev) for obj, prev in zip(objs, previous)]
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StoreError('update', table, e) from e
        self._publish(events)
        return updated

    def delete(self, table: str, filters: Dict[str, Any]) -> int:
        model = self._model(table)
        if not filters:
            raise ValueError("delete requires at least one filter")
        try:
            objs = self._filtered(model, filters).all()
            events = [delete_event(table, _change_keys(obj)) for obj in objs]
            for obj in objs:
                db.session.delete(obj)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StoreError('delete', table, e) from e
        self._publish(events)
        return len(events)

    # Change stream
    def subscribe(
        self,
        table: str,
        callback: Callable[[ChangeEvent], None],
        filter: Optional[dict] = None,
        events: Iterable[ChangeType] = None
    ) -> Subscription:
        self._model(table)
        return self.feed.subscribe(table, callback, filter=filter, events=events)

    # Helpers
    def _model(self, table: str):
        try:
            return TABLES[table]
        except KeyError:
            raise ValueError(f"Unknown table: {table}")

    def _column(self, model, name: str):
        if name not in model.__table__.columns:
            raise ValueError(f"Unknown column {model.__tablename__}.{name}")
        return getattr(model, name)

    def _filtered(self, model, filters: Optional[Dict[str, Any]]):
        query = model.query
        for name, value in (filters or {}).items():
            column = self._column(model, name)
            if isinstance(value, (list, tuple, set, frozenset)):
                query = query.filter(column.in_(list(value)))
            else:
                query = query.filter(column == value)
        return query

    def _publish(self, events: List[ChangeEvent]):
        # The write is already committed; a feed outage only delays other viewers.
        for event in events:
            try:
                self.feed.publish(event)
            except Exception:
                logger.exception("Could not publish %s change on %s", event.type.value, event.table)


def _ordering(order_by) -> List[str]:
    if not order_by:
        return []
    if isinstance(order_by, str):
        return [order_by]
    return list(order_by)


def _change_keys(obj) -> Dict[str, Any]:
    return {key: getattr(obj, key) for key in obj.CHANGE_KEYS}
