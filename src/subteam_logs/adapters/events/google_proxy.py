from __future__ import annotations

import json
import logging
from datetime import date
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode, urlparse
from urllib.request import Request, urlopen

from ...calendar.binning import coerce_event
from ...calendar.grid import parse_iso_date
from ...domain.models import CalendarEvent
from .base import EventSourceError

LOGGER = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10
UNTITLED_EVENT = "(no title)"


def _fetch_json(url: str, *, timeout_seconds: float) -> Any:
    request = Request(
        url,
        headers={"Accept": "application/json", "User-Agent": "subteam-logs/0.1"},
    )
    try:
        with urlopen(request, timeout=timeout_seconds) as response:
            payload_bytes = response.read()
    except (HTTPError, URLError, TimeoutError, OSError) as exc:
        raise EventSourceError(f"Unable to fetch calendar events: {url}") from exc

    try:
        return json.loads(payload_bytes.decode("utf-8-sig"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise EventSourceError(f"Unable to decode calendar payload from URL: {url}") from exc


def _item_start_date(item: dict[str, Any]) -> date | None:
    start = item.get("start")
    if not isinstance(start, dict):
        return None
    return parse_iso_date(start.get("date") or start.get("dateTime"))


def normalize_google_items(payload: Any, *, default_category: str = "") -> list[CalendarEvent]:
    """Map Google Calendar event resources onto calendar events.

    Accepts either a bare list of items or an events-list response with an
    ``items`` key. Items without a usable start date are skipped.
    """
    if isinstance(payload, dict):
        payload = payload.get("items", [])
    if not isinstance(payload, list):
        raise EventSourceError("Calendar payload must be a list or an object with 'items'")

    events: list[CalendarEvent] = []
    for item in payload:
        if not isinstance(item, dict):
            continue
        event_date = _item_start_date(item)
        if event_date is None:
            LOGGER.debug("Skipping calendar item without a start date: %r", item.get("id"))
            continue

        summary = item.get("summary")
        title = summary.strip() if isinstance(summary, str) and summary.strip() else UNTITLED_EVENT
        description = item.get("description")
        event = coerce_event(
            {
                "date": event_date,
                "title": title,
                "category": default_category,
                "body": description if isinstance(description, str) else "",
            }
        )
        if event is not None:
            events.append(event)
    return events


class GoogleCalendarProxySource:
    """Reads Google Calendar events through a backend proxy endpoint.

    The proxy is expected to answer ``GET <url>?start=YYYY-MM-DD&end=YYYY-MM-DD``
    with the events-list JSON of the calendar it fronts.
    """

    def __init__(
        self,
        *,
        url: str,
        source_id: str = "google",
        default_category: str = "",
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._url = url.strip()
        parsed = urlparse(self._url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise EventSourceError(f"Calendar proxy URL must be an absolute http(s) URL: {url}")
        self._source_id = source_id
        self._default_category = default_category.strip()
        self._timeout_seconds = timeout_seconds

    @property
    def source_id(self) -> str:
        return self._source_id

    def _build_url(self, start: date, end: date) -> str:
        separator = "&" if urlparse(self._url).query else "?"
        query = urlencode({"start": start.isoformat(), "end": end.isoformat()})
        return f"{self._url}{separator}{query}"

    def fetch_events_for_range(self, start: date, end: date) -> list[CalendarEvent]:
        payload = _fetch_json(self._build_url(start, end), timeout_seconds=self._timeout_seconds)
        events = normalize_google_items(payload, default_category=self._default_category)
        return [event for event in events if start <= event.date <= end]
