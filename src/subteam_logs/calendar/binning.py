from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from pydantic import ValidationError

from ..domain.models import CalendarEvent, DateRange, EventsByDate
from .grid import to_iso_date

LOGGER = logging.getLogger(__name__)


def coerce_event(record: CalendarEvent | Mapping[str, Any] | Any) -> CalendarEvent | None:
    """Return a validated event, or None for a record that cannot be read."""
    if isinstance(record, CalendarEvent):
        return record
    if not isinstance(record, Mapping):
        return None
    try:
        return CalendarEvent.model_validate(dict(record))
    except ValidationError as exc:
        LOGGER.debug("Dropping malformed event record %r: %s", record, exc)
        return None


def coerce_events(records: Iterable[CalendarEvent | Mapping[str, Any] | Any]) -> list[CalendarEvent]:
    events: list[CalendarEvent] = []
    for record in records:
        event = coerce_event(record)
        if event is not None:
            events.append(event)
    return events


def bin_events(
    events: Iterable[CalendarEvent | Mapping[str, Any] | Any],
    date_range: DateRange,
) -> EventsByDate:
    events_by_date: EventsByDate = {}
    dropped = 0
    for record in events:
        event = coerce_event(record)
        if event is None or not date_range.contains(event.date):
            dropped += 1
            continue
        events_by_date.setdefault(to_iso_date(event.date), []).append(event)

    if dropped:
        LOGGER.debug(
            "Dropped %d event(s) outside %s..%s or malformed",
            dropped,
            date_range.start_iso,
            date_range.end_iso,
        )
    return events_by_date


def _category_key(value: str | None) -> str:
    return (value or "").casefold()


def filter_by_category(day_events: Iterable[CalendarEvent], category: str | None) -> list[CalendarEvent]:
    wanted = _category_key(category)
    return [event for event in day_events if _category_key(event.category) == wanted]


def group_by_category(
    day_events: Iterable[CalendarEvent],
    categories: Iterable[str],
) -> dict[str, list[CalendarEvent]]:
    """Split a day's events per category label, keeping configured order.

    Events without a category are listed under the empty label, which is only
    present when at least one such event exists.
    """
    events = list(day_events)
    grouped = {label: filter_by_category(events, label) for label in categories}
    uncategorized = filter_by_category(events, "")
    if uncategorized:
        grouped[""] = uncategorized
    return grouped
