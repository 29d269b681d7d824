from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Any, Iterable, Mapping

import yaml

from ...calendar.binning import coerce_events
from ...domain.models import CalendarEvent
from .base import EventSourceError

SAMPLE_LOGS: tuple[dict[str, str], ...] = (
    {
        "date": "2025-01-10",
        "title": "Built intake prototype",
        "subteam": "Mechanical",
        "body": "Mounted rollers and tested.",
    },
    {
        "date": "2025-01-10",
        "title": "PID tuning",
        "subteam": "Programming",
        "body": "Tuned angular PID for smoother turns.",
    },
    {
        "date": "2025-01-12",
        "title": "Battery tests",
        "subteam": "Electrical",
        "body": "Cycle tested 3 batteries.",
    },
)


def _read_log_records(path: Path) -> list[Any]:
    try:
        raw_text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise EventSourceError(f"Unable to read logs file: {path}") from exc

    try:
        payload = yaml.safe_load(raw_text)
    except yaml.YAMLError as exc:
        raise EventSourceError(f"Invalid YAML in logs file: {path}") from exc

    if payload is None:
        return []
    if isinstance(payload, dict):
        payload = payload.get("logs", [])
    if not isinstance(payload, list):
        raise EventSourceError(f"Logs file must contain a list of log records: {path}")
    return payload


class LocalEventSource:
    """Serves events from memory, or from a YAML file re-read on every fetch."""

    def __init__(
        self,
        *,
        source_id: str = "local",
        path: Path | None = None,
        records: Iterable[CalendarEvent | Mapping[str, Any]] | None = None,
    ) -> None:
        self._source_id = source_id
        self._path = Path(path) if path is not None else None
        if records is None:
            records = SAMPLE_LOGS
        self._events = coerce_events(records)

    @property
    def source_id(self) -> str:
        return self._source_id

    def _load_events(self) -> list[CalendarEvent]:
        if self._path is None:
            return list(self._events)
        return coerce_events(_read_log_records(self._path))

    def fetch_events_for_range(self, start: date, end: date) -> list[CalendarEvent]:
        return [event for event in self._load_events() if start <= event.date <= end]
