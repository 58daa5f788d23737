"""
Timeline engine: production windows and the backlog/scheduled split.

An item's production window ends on its scheduled publish date and starts
`timeline_days` calendar days earlier. Dates carry no time of day and no
timezone, so the subtraction is plain calendar arithmetic.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, List, NamedTuple, Optional, TypeVar, Union

DateLike = Union[date, str]
T = TypeVar("T")


@dataclass(frozen=True)
class TimelineBlock:
    item_id: str
    scheduled_date: date
    start_date: date
    days: int

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.scheduled_date


class BacklogSplit(NamedTuple):
    backlog: List
    scheduled: List


def to_calendar_date(value: DateLike) -> date:
    """Accept a date or a 'YYYY-MM-DD' string; datetimes are truncated to their date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


def format_ymd(value: date) -> str:
    return value.isoformat()


def compute_timeline(item) -> Optional[TimelineBlock]:
    if item.scheduled_date is None:
        return None
    days = item.timeline_days
    if days < 0:
        raise ValueError(f"timeline_days must be >= 0, got {days}")

    end = to_calendar_date(item.scheduled_date)
    return TimelineBlock(
        item_id=item.id,
        scheduled_date=end,
        start_date=end - timedelta(days=days),
        days=days,
    )


def split_backlog_and_scheduled(items: Iterable[T]) -> BacklogSplit:
    backlog: List[T] = []
    scheduled: List[T] = []
    for item in items:
        if item.scheduled_date is None:
            backlog.append(item)
        else:
            scheduled.append(item)
    return BacklogSplit(backlog, scheduled)
