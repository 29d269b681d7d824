from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable

from ..adapters.events.base import EventSource, EventSourceError
from ..domain.models import CalendarEvent, DateRange, DayLogs, EventsByDate, MonthView
from .binning import bin_events, filter_by_category
from .grid import build_grid, compute_grid_range, format_month_label, normalize_month, shift_month

LOGGER = logging.getLogger(__name__)

NO_LOGS_MESSAGE = "No logs for this subteam on this date."


def fetch_events_safely(source: EventSource, date_range: DateRange) -> tuple[list[CalendarEvent], bool]:
    """Fetch events for a range, returning ``(events, failed)`` instead of raising."""
    try:
        events = source.fetch_events_for_range(date_range.start, date_range.end)
    except EventSourceError as exc:
        LOGGER.warning("Event source '%s' failed: %s", source.source_id, exc)
        return [], True
    except Exception:
        LOGGER.exception("Event source '%s' failed", source.source_id)
        return [], True
    return list(events), False


def compose_month_view(
    view_year: int,
    view_month: int,
    events: Iterable[CalendarEvent],
    *,
    source_id: str,
    failed: bool = False,
) -> MonthView:
    year, month_index = normalize_month(view_year, view_month)
    date_range = compute_grid_range(year, month_index)
    events_by_date = bin_events(events, date_range)
    return MonthView(
        year=year,
        month=month_index,
        label=format_month_label(year, month_index),
        range=date_range,
        cells=build_grid(year, month_index, events_by_date),
        events_by_date=events_by_date,
        source_id=source_id,
        failed=failed,
    )


def load_month_view(source: EventSource, view_year: int, view_month: int) -> MonthView:
    date_range = compute_grid_range(view_year, view_month)
    events, failed = fetch_events_safely(source, date_range)
    view = compose_month_view(view_year, view_month, events, source_id=source.source_id, failed=failed)
    LOGGER.info(
        "Loaded %s from '%s': %d event(s) on %d day(s)",
        view.label,
        source.source_id,
        view.event_count,
        len(view.events_by_date),
    )
    return view


def build_day_logs(
    events_by_date: EventsByDate,
    iso_date: str,
    category: str,
    *,
    is_authenticated: bool = False,
) -> DayLogs:
    entries = filter_by_category(events_by_date.get(iso_date, []), category)
    return DayLogs(
        date=iso_date,
        category=category,
        entries=entries,
        message=None if entries else NO_LOGS_MESSAGE,
        can_edit=is_authenticated,
    )


@dataclass(frozen=True, slots=True)
class RangeRequest:
    token: int
    year: int
    month: int
    range: DateRange
    source_id: str
    source: EventSource = field(compare=False, repr=False)


class CalendarSession:
    """Visible-month state for one viewer.

    Each month request gets a sequence token; only the result of the most
    recent request is applied, so a slow response for a month the viewer has
    already left is discarded.
    """

    def __init__(self, source: EventSource, *, today: date | None = None) -> None:
        reference = today or date.today()
        self._source = source
        self._year = reference.year
        self._month = reference.month - 1
        self._view: MonthView | None = None
        self._sequence = 0
        self._lock = threading.Lock()

    @property
    def source(self) -> EventSource:
        return self._source

    @property
    def year(self) -> int:
        return self._year

    @property
    def month(self) -> int:
        return self._month

    @property
    def view(self) -> MonthView | None:
        return self._view

    @property
    def events_by_date(self) -> EventsByDate:
        return self._view.events_by_date if self._view is not None else {}

    def begin(self, view_year: int, view_month: int) -> RangeRequest:
        year, month_index = normalize_month(view_year, view_month)
        with self._lock:
            self._sequence += 1
            self._year, self._month = year, month_index
            return RangeRequest(
                token=self._sequence,
                year=year,
                month=month_index,
                range=compute_grid_range(year, month_index),
                source_id=self._source.source_id,
                source=self._source,
            )

    def is_current(self, request: RangeRequest) -> bool:
        with self._lock:
            return request.token == self._sequence

    def _apply(self, request: RangeRequest, events: Iterable[CalendarEvent], *, failed: bool) -> MonthView | None:
        view = compose_month_view(
            request.year,
            request.month,
            events,
            source_id=request.source_id,
            failed=failed,
        )
        with self._lock:
            if request.token != self._sequence:
                LOGGER.debug("Discarding stale result for %s (token %d)", view.label, request.token)
                return None
            self._view = view
        return view

    def resolve(self, request: RangeRequest, events: Iterable[CalendarEvent]) -> MonthView | None:
        return self._apply(request, events, failed=False)

    def fail(self, request: RangeRequest, error: BaseException) -> MonthView | None:
        LOGGER.warning("Event fetch for %s..%s failed: %s", request.range.start_iso, request.range.end_iso, error)
        return self._apply(request, [], failed=True)

    def load(self, view_year: int, view_month: int) -> MonthView | None:
        request = self.begin(view_year, view_month)
        events, failed = fetch_events_safely(request.source, request.range)
        return self._apply(request, events, failed=failed)

    def reload(self) -> MonthView | None:
        return self.load(self._year, self._month)

    def previous_month(self) -> MonthView | None:
        return self.load(*shift_month(self._year, self._month, -1))

    def next_month(self) -> MonthView | None:
        return self.load(*shift_month(self._year, self._month, 1))

    def select_source(self, source: EventSource) -> MonthView | None:
        with self._lock:
            self._source = source
        return self.reload()

    def day_logs(self, iso_date: str, category: str, *, is_authenticated: bool = False) -> DayLogs:
        return build_day_logs(self.events_by_date, iso_date, category, is_authenticated=is_authenticated)
