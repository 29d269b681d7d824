from .binning import bin_events, coerce_event, coerce_events, filter_by_category, group_by_category
from .grid import (
    GRID_CELLS,
    build_grid,
    compute_grid_range,
    format_month_label,
    grid_weeks,
    normalize_month,
    parse_iso_date,
    shift_month,
    to_iso_date,
)

__all__ = [
    "GRID_CELLS",
    "bin_events",
    "build_grid",
    "coerce_event",
    "coerce_events",
    "compute_grid_range",
    "filter_by_category",
    "format_month_label",
    "grid_weeks",
    "group_by_category",
    "normalize_month",
    "parse_iso_date",
    "shift_month",
    "to_iso_date",
]
