"""
Month calendar grid with scheduled items and production windows.

The grid always has 6 weeks x 7 days, weeks starting on Sunday, padded with
the trailing days of the previous month and the leading days of the next.
"""

from __future__ import annotations

import calendar as _calendar
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, Iterable, List, Tuple

from content_organiser.planning.timeline import (TimelineBlock,
                                                 compute_timeline)

GRID_CELLS = 42
WEEKDAY_LABELS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")


@dataclass(frozen=True)
class CalendarDay:
    day: date
    is_current_month: bool
    is_today: bool
    items: Tuple = ()
    in_production: Tuple = ()

    @property
    def number(self) -> int:
        return self.day.day


def shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def grid_bounds(year: int, month: int) -> Tuple[date, date]:
    """First and last date shown on the grid for this month."""
    first = date(year, month, 1)
    # date.weekday(): Monday == 0; shift so Sunday opens the week
    leading = (first.weekday() + 1) % 7
    start = first - timedelta(days=leading)
    return start, start + timedelta(days=GRID_CELLS - 1)


def month_title(year: int, month: int) -> str:
    return f"{_calendar.month_name[month]} {year}"


def build_month_grid(year: int, month: int, items: Iterable, today: date) -> List[CalendarDay]:
    """Lay items out on the month grid.

    Unscheduled items are ignored here; the calendar page lists them
    separately.
    """
    start, _ = grid_bounds(year, month)

    by_day: Dict[date, List] = {}
    blocks: List[Tuple[TimelineBlock, object]] = []
    for item in items:
        block = compute_timeline(item)
        if block is None:
            continue
        by_day.setdefault(block.scheduled_date, []).append(item)
        blocks.append((block, item))

    days: List[CalendarDay] = []
    for offset in range(GRID_CELLS):
        current = start + timedelta(days=offset)
        producing = tuple(
            item for block, item in blocks
            if block.covers(current)
        )
        days.append(CalendarDay(
            day=current,
            is_current_month=(current.year == year and current.month == month),
            is_today=(current == today),
            items=tuple(by_day.get(current, ())),
            in_production=producing,
        ))
    return days
