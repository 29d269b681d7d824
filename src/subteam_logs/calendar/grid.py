"""Month grid calculations.

Month indexes are zero-based (0 = January) and weeks start on Sunday. The
visible grid is always 6 rows of 7 days so the calendar height stays
constant.
"""

from __future__ import annotations

import calendar
from datetime import MAXYEAR, MINYEAR, date, timedelta

from ..domain.models import DateRange, EventsByDate, GridCell, parse_iso_date

GRID_WEEKS = 6
GRID_CELLS = GRID_WEEKS * 7

# The grid spills into the neighbouring months, so the first and last
# representable years have no complete grid.
MIN_GRID_YEAR = MINYEAR + 1
MAX_GRID_YEAR = MAXYEAR - 1


def normalize_month(view_year: int, view_month: int) -> tuple[int, int]:
    """Fold an out-of-range month index into the neighbouring years."""
    year_offset, month_index = divmod(view_month, 12)
    return view_year + year_offset, month_index


def shift_month(view_year: int, view_month: int, delta: int) -> tuple[int, int]:
    return normalize_month(view_year, view_month + delta)


def sunday_weekday(value: date) -> int:
    """Day of week with Sunday = 0 ... Saturday = 6."""
    return value.isoweekday() % 7


def compute_grid_range(view_year: int, view_month: int) -> DateRange:
    year, month_index = normalize_month(view_year, view_month)
    first = date(year, month_index + 1, 1)
    start = first - timedelta(days=sunday_weekday(first))
    return DateRange(start=start, end=start + timedelta(days=GRID_CELLS - 1))


def to_iso_date(value: date) -> str:
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def format_month_label(view_year: int, view_month: int) -> str:
    year, month_index = normalize_month(view_year, view_month)
    return f"{calendar.month_name[month_index + 1]} {year}"


def build_grid(view_year: int, view_month: int, events_by_date: EventsByDate) -> list[GridCell]:
    year, month_index = normalize_month(view_year, view_month)
    grid_range = compute_grid_range(year, month_index)
    cells: list[GridCell] = []
    for cell_date in grid_range.days():
        iso_date = to_iso_date(cell_date)
        cells.append(
            GridCell(
                date=cell_date,
                iso_date=iso_date,
                day=cell_date.day,
                is_in_current_month=cell_date.year == year and cell_date.month == month_index + 1,
                has_events=bool(events_by_date.get(iso_date)),
            )
        )
    return cells


def grid_weeks(cells: list[GridCell]) -> list[list[GridCell]]:
    return [cells[index : index + 7] for index in range(0, len(cells), 7)]
