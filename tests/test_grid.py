"""Tests for month, week, hour and mini-calendar grid generation."""
from datetime import date, timedelta

import pytest

from calendar_view.grid import (
    HOURS,
    day_abbr,
    days_in_month,
    hour_label,
    mini_calendar_days,
    month_grid,
    month_rows,
    view_title,
    week_grid,
)
from workspace.models import DateKey


def _every_day(start: date, end: date):
    day = start
    while day <= end:
        yield DateKey.from_date(day)
        day += timedelta(days=1)


def test_month_grid_always_has_42_cells_and_full_month() -> None:
    """Checked for every reference date over two years, leap year included."""
    for reference in _every_day(date(2024, 1, 1), date(2025, 12, 31)):
        cells = month_grid(reference, today=DateKey(2000, 1, 1))
        assert len(cells) == 42
        current = [cell for cell in cells if cell.is_current_month]
        assert len(current) == days_in_month(reference.year, reference.month)
        assert all(cell.date.month == reference.month for cell in current)


def test_month_grid_march_2025_layout() -> None:
    cells = month_grid(DateKey(2025, 3, 15), today=DateKey(2025, 3, 15))

    leading = [cell for cell in cells if cell.is_prev_month]
    trailing = [cell for cell in cells if cell.is_next_month]
    # March 1st 2025 is a Saturday
    assert [cell.date for cell in leading] == [DateKey(2025, 2, d) for d in range(23, 29)]
    assert [cell.date for cell in trailing] == [DateKey(2025, 4, d) for d in range(1, 6)]
    assert cells[6].date == DateKey(2025, 3, 1)

    today_cells = [cell for cell in cells if cell.is_today]
    assert [cell.date for cell in today_cells] == [DateKey(2025, 3, 15)]


def test_month_grid_january_rolls_back_to_previous_december() -> None:
    cells = month_grid(DateKey(2025, 1, 10), today=DateKey(2000, 1, 1))
    # January 1st 2025 is a Wednesday
    assert [cell.date for cell in cells[:3]] == [
        DateKey(2024, 12, 29),
        DateKey(2024, 12, 30),
        DateKey(2024, 12, 31),
    ]
    assert cells[3].date == DateKey(2025, 1, 1)


def test_month_grid_december_rolls_forward_to_next_january() -> None:
    cells = month_grid(DateKey(2024, 12, 1), today=DateKey(2000, 1, 1))
    # December 1st 2024 is a Sunday, so there are no leading cells
    assert cells[0].date == DateKey(2024, 12, 1)
    trailing = [cell.date for cell in cells if cell.is_next_month]
    assert trailing[0] == DateKey(2025, 1, 1)
    assert trailing[-1] == DateKey(2025, 1, 11)


def test_month_grid_is_today_only_for_current_month_cells() -> None:
    # 2025-02-28 shows up as a leading cell of March; it must not be tagged
    cells = month_grid(DateKey(2025, 3, 1), today=DateKey(2025, 2, 28))
    assert not any(cell.is_today for cell in cells)


def test_month_rows_split_into_weeks() -> None:
    rows = month_rows(month_grid(DateKey(2025, 3, 1)))
    assert len(rows) == 6
    assert all(len(row) == 7 for row in rows)
    assert all(row[0].date.weekday_index == 0 for row in rows)


def test_week_grid_is_sunday_first_and_contains_reference() -> None:
    for reference in _every_day(date(2024, 12, 1), date(2025, 3, 31)):
        days = week_grid(reference)
        assert len(days) == 7
        assert days[0].weekday_index == 0
        assert reference in days
        assert all(b == a.add_days(1) for a, b in zip(days, days[1:]))


def test_week_grid_across_year_boundary() -> None:
    days = week_grid(DateKey(2025, 1, 1))
    assert days[0] == DateKey(2024, 12, 29)
    assert days[-1] == DateKey(2025, 1, 4)


def test_hours_cover_the_day() -> None:
    assert HOURS == tuple(range(24))


@pytest.mark.parametrize(
    "hour, label",
    [
        (0, "12 AM"),
        (1, "1 AM"),
        (11, "11 AM"),
        (12, "12 PM"),
        (13, "1 PM"),
        (23, "11 PM"),
    ],
)
def test_hour_label(hour: int, label: str) -> None:
    assert hour_label(hour) == label


def test_hour_label_rejects_out_of_range() -> None:
    with pytest.raises(ValueError):
        hour_label(24)


def test_mini_calendar_days_use_none_placeholders() -> None:
    days = mini_calendar_days(DateKey(2025, 3, 20))
    assert days[:6] == [None] * 6
    assert days[6:] == list(range(1, 32))

    # February 2026 starts on a Sunday: no placeholders
    assert mini_calendar_days(DateKey(2026, 2, 1)) == list(range(1, 29))


def test_view_titles() -> None:
    reference = DateKey(2025, 3, 15)
    assert view_title(reference, "month") == "March 2025"
    assert view_title(reference, "week") == "March 15"
    assert view_title(reference, "day") == "Saturday, March 15"
    assert day_abbr(reference) == "SAT"
