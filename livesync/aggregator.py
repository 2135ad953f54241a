"""
Derived metrics computed from freshly fetched rows.

Everything here is pure: rows are read, never mutated, and results are
always rebuilt from scratch.
"""
import calendar
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple


def count_by_foreign_key(
    rows: Iterable[dict],
    key_field: str,
    status_filter: Optional[Callable[[dict], bool]] = None
) -> Dict[Any, int]:
    """
    Count rows per value of `key_field`.

    Rows failing `status_filter` are skipped. Keys with no rows are absent
    from the result, so callers default to 0.
    """
    counts: Dict[Any, int] = {}
    for row in rows:
        if status_filter is not None and not status_filter(row):
            continue
        key = row.get(key_field)
        counts[key] = counts.get(key, 0) + 1
    return counts


def exclude_status(*statuses: str, field: str = "status") -> Callable[[dict], bool]:
    excluded = set(statuses)
    return lambda row: row.get(field) not in excluded


def only_status(*statuses: str, field: str = "status") -> Callable[[dict], bool]:
    included = set(statuses)
    return lambda row: row.get(field) in included


def win_rate(wins: int, matches_played: int) -> float:
    """Percentage of matches won, unrounded; 0 when nothing has been played."""
    if not matches_played:
        return 0
    return wins / matches_played * 100


def total_points(survival_points: int, kill_points: int) -> int:
    return survival_points + kill_points


def format_rate(rate: float) -> str:
    return f"{rate:.1f}%"


def trailing_months(now: datetime = None, count: int = 3) -> List[Tuple[int, int]]:
    """
    The last `count` calendar months ending with the current one, oldest
    first, as (year, month) pairs in local time.
    """
    now = _to_local(now or datetime.now())
    year, month = now.year, now.month
    months = []
    for _ in range(count):
        months.append((year, month))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    months.reverse()
    return months


def month_label(year_month: Tuple[int, int]) -> str:
    return calendar.month_abbr[year_month[1]]


def bucket_by_month(
    rows: Iterable[dict],
    date_field: str,
    months: List[Tuple[int, int]]
) -> List[dict]:
    """
    Count rows per calendar month (local time) for each of `months`.

    Every requested month gets a bucket, including empty ones. Rows outside
    the window or without a parseable date are ignored.
    """
    counts = {ym: 0 for ym in months}
    for row in rows:
        when = parse_timestamp(row.get(date_field))
        if when is None:
            continue
        key = (when.year, when.month)
        if key in counts:
            counts[key] += 1
    return [{"label": month_label(ym), "count": counts[ym]} for ym in months]


def parse_timestamp(value) -> Optional[datetime]:
    """Parse a datetime or ISO string into local time; naive values are already local."""
    if value is None:
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    if not isinstance(value, datetime):
        return None
    return _to_local(value)


def _to_local(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)
