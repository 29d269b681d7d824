from __future__ import annotations

from datetime import date
from typing import Protocol

from ...domain.models import CalendarEvent


class EventSourceError(RuntimeError):
    """Raised when events cannot be loaded from a source."""


class EventSource(Protocol):
    @property
    def source_id(self) -> str:
        """Stable identifier used to select the source."""

    def fetch_events_for_range(self, start: date, end: date) -> list[CalendarEvent]:
        """Return normalized events dated within the inclusive range."""
