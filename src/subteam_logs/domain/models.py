from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterator

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator


def parse_iso_date(value: object) -> date | None:
    """Read a calendar date, keeping only the date part of an ISO datetime."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip().split("T", 1)[0]
    try:
        return date.fromisoformat(text)
    except ValueError:
        return None


class CalendarEvent(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    date: date
    title: str = ""
    category: str = Field(default="", validation_alias=AliasChoices("category", "subteam"))
    body: str = ""

    @field_validator("date", mode="before")
    @classmethod
    def validate_date(cls, value: object) -> date:
        parsed = parse_iso_date(value)
        if parsed is None:
            raise ValueError("calendar event date must be an ISO date")
        return parsed

    @field_validator("title", "category", "body", mode="before")
    @classmethod
    def normalize_text(cls, value: object) -> str:
        if value is None:
            return ""
        return str(value).strip()


class DateRange(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: date
    end: date

    @model_validator(mode="after")
    def validate_order(self) -> DateRange:
        if self.end < self.start:
            raise ValueError("date range end must be >= start")
        return self

    @property
    def start_iso(self) -> str:
        return self.start.isoformat()

    @property
    def end_iso(self) -> str:
        return self.end.isoformat()

    def contains(self, value: date) -> bool:
        return self.start <= value <= self.end

    def days(self) -> Iterator[date]:
        current = self.start
        while current <= self.end:
            yield current
            current += timedelta(days=1)


EventsByDate = dict[str, list[CalendarEvent]]


class GridCell(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: date
    iso_date: str
    day: int
    is_in_current_month: bool
    has_events: bool


class MonthView(BaseModel):
    year: int
    month: int
    label: str
    range: DateRange
    cells: list[GridCell]
    events_by_date: EventsByDate = Field(default_factory=dict)
    source_id: str
    failed: bool = False

    @property
    def event_count(self) -> int:
        return sum(len(events) for events in self.events_by_date.values())


class DayLogs(BaseModel):
    date: str
    category: str
    entries: list[CalendarEvent] = Field(default_factory=list)
    message: str | None = None
    can_edit: bool = False
