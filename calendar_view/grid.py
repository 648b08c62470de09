"""Pure calendar grid calculations - no store or UI dependencies.

All grids are Sunday-first. Month indices are 1-based here; only
``EventStore.get_events_for_day`` speaks 0-based months.
"""
from __future__ import annotations

import calendar
from dataclasses import dataclass
import typing as t

from workspace.models import DateKey

DAY_ABBR = ["SUN", "MON", "TUE", "WED", "THU", "FRI", "SAT"]
MONTH_GRID_CELLS = 42  # 6 rows x 7 columns
HOURS: tuple[int, ...] = tuple(range(24))

ViewMode = t.Literal["day", "week", "month"]
VIEW_MODES: tuple[str, ...] = t.get_args(ViewMode)


@dataclass(frozen=True)
class MonthCell:
    """One cell of the month grid."""
    date: DateKey
    is_prev_month: bool = False
    is_next_month: bool = False
    is_today: bool = False

    @property
    def is_current_month(self) -> bool:
        return not (self.is_prev_month or self.is_next_month)


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def prev_month(year: int, month: int) -> tuple[int, int]:
    """Return (year, month) for one month earlier."""
    if month == 1:
        return year - 1, 12
    return year, month - 1


def next_month(year: int, month: int) -> tuple[int, int]:
    """Return (year, month) for one month later."""
    if month == 12:
        return year + 1, 1
    return year, month + 1


def first_weekday_index(year: int, month: int) -> int:
    """Sunday-first weekday index of the 1st of the month."""
    return DateKey(year, month, 1).weekday_index


def month_grid(reference: DateKey, today: t.Optional[DateKey] = None) -> list[MonthCell]:
    """Return the 42 cells of the month containing ``reference``.

    Leading cells come from the previous month (as many as the weekday index
    of the 1st), then every day of the month, then next-month days up to 42.
    """
    today = today or DateKey.today()
    year, month = reference.year, reference.month
    leading = first_weekday_index(year, month)
    length = days_in_month(year, month)

    prev_year, prev_mon = prev_month(year, month)
    prev_length = days_in_month(prev_year, prev_mon)
    cells = [
        MonthCell(DateKey(prev_year, prev_mon, day), is_prev_month=True)
        for day in range(prev_length - leading + 1, prev_length + 1)
    ]

    for day in range(1, length + 1):
        key = DateKey(year, month, day)
        cells.append(MonthCell(key, is_today=key == today))

    next_year, next_mon = next_month(year, month)
    remaining = MONTH_GRID_CELLS - len(cells)
    cells.extend(
        MonthCell(DateKey(next_year, next_mon, day), is_next_month=True)
        for day in range(1, remaining + 1)
    )
    return cells


def month_rows(cells: t.Sequence[t.Any]) -> list[list[t.Any]]:
    """Split a flat 42-cell grid into six rows of seven."""
    return [list(cells[i:i + 7]) for i in range(0, len(cells), 7)]


def week_grid(reference: DateKey) -> list[DateKey]:
    """The seven dates of the Sunday-first week containing ``reference``."""
    start = reference.add_days(-reference.weekday_index)
    return [start.add_days(offset) for offset in range(7)]


def hour_label(hour: int) -> str:
    """12-hour label for an hour row: 0 -> "12 AM", 12 -> "12 PM", 13 -> "1 PM"."""
    if not 0 <= hour <= 23:
        raise ValueError(f"Hour out of range: {hour}")
    suffix = "AM" if hour < 12 else "PM"
    return f"{hour % 12 or 12} {suffix}"


def mini_calendar_days(reference: DateKey) -> list[t.Optional[int]]:
    """Compact picker cells: None for each leading blank, then 1..days-in-month."""
    year, month = reference.year, reference.month
    blanks: list[t.Optional[int]] = [None] * first_weekday_index(year, month)
    return blanks + list(range(1, days_in_month(year, month) + 1))


def day_abbr(key: DateKey) -> str:
    return DAY_ABBR[key.weekday_index]


def view_title(reference: DateKey, view: str) -> str:
    """Header text for a view: "March 2025", "March 15" or "Saturday, March 15"."""
    month_name = calendar.month_name[reference.month]
    if view == "month":
        return f"{month_name} {reference.year}"
    if view == "week":
        return f"{month_name} {reference.day}"
    weekday = calendar.day_name[reference.to_date().weekday()]
    return f"{weekday}, {month_name} {reference.day}"
