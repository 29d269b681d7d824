from __future__ import annotations

import logging
import re
from contextlib import asynccontextmanager
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from .adapters.events import EventSource
from .calendar.binning import group_by_category
from .calendar.grid import (
    MAX_GRID_YEAR,
    MIN_GRID_YEAR,
    grid_weeks,
    parse_iso_date,
    shift_month,
    to_iso_date,
)
from .calendar.view import build_day_logs, load_month_view
from .domain.models import MonthView
from .settings import AppSettings, load_settings
from .sources import build_event_sources

LOGGER = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent
WEB_DIR = BASE_DIR / "web"
TEMPLATES_DIR = WEB_DIR / "templates"
STATIC_DIR = WEB_DIR / "static"

UNCATEGORIZED_LABEL = "Uncategorized"
WEEKDAY_LABELS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")
ISO_DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def _get_settings(request: Request) -> AppSettings:
    return request.app.state.settings


def _get_source(request: Request, source_id: str | None) -> EventSource:
    settings = _get_settings(request)
    sources: dict[str, EventSource] = request.app.state.sources
    selected = source_id or settings.yaml.calendar.default_source
    source = sources.get(selected or "")
    if source is None:
        raise HTTPException(status_code=404, detail="Unknown calendar source")
    return source


def _is_authenticated(request: Request, settings: AppSettings) -> bool:
    return bool(request.cookies.get(settings.yaml.calendar.session_cookie_name))


def _view_month(settings: AppSettings, year: int | None, month: int | None) -> tuple[int, int]:
    today = datetime.now(settings.timezone).date()
    return (year if year is not None else today.year), (month if month is not None else today.month) - 1


def _parse_day(raw_date: str) -> date:
    if not ISO_DATE_PATTERN.fullmatch(raw_date):
        raise HTTPException(status_code=404, detail="Unknown date")
    parsed = parse_iso_date(raw_date)
    if parsed is None or not MIN_GRID_YEAR <= parsed.year <= MAX_GRID_YEAR:
        raise HTTPException(status_code=404, detail="Unknown date")
    return parsed


def _resolve_category(settings: AppSettings, category: str | None) -> str:
    if category is None:
        return settings.yaml.calendar.categories[0]
    return category.strip()


def _month_link(year: int, month_index: int, source_id: str) -> dict[str, Any]:
    return {"year": year, "month": month_index + 1, "source": source_id}


def _build_calendar_context(settings: AppSettings, view: MonthView) -> dict[str, Any]:
    previous_year, previous_month = shift_month(view.year, view.month, -1)
    next_year, next_month = shift_month(view.year, view.month, 1)
    return {
        "calendar_label": view.label,
        "calendar_year": view.year,
        "calendar_month": view.month + 1,
        "calendar_weeks": grid_weeks(view.cells),
        "calendar_weekday_labels": WEEKDAY_LABELS,
        "calendar_source_id": view.source_id,
        "calendar_failed": view.failed,
        "calendar_event_count": view.event_count,
        "calendar_previous": _month_link(previous_year, previous_month, view.source_id),
        "calendar_next": _month_link(next_year, next_month, view.source_id),
        "calendar_sources": [
            {"id": source.id, "label": source.display_label}
            for source in settings.yaml.calendar.sources
        ],
    }


@asynccontextmanager
async def lifespan(application: FastAPI):
    settings = load_settings()
    logging.basicConfig(
        level=settings.env.subteam_logs_log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    application.state.settings = settings
    application.state.sources = build_event_sources(settings)
    application.state.started_at_utc = datetime.now(timezone.utc)
    LOGGER.info(
        "Subteam logs started with %d source(s), default '%s'",
        len(application.state.sources),
        settings.yaml.calendar.default_source,
    )
    yield


app = FastAPI(title="Subteam Logs", version="0.1.0", lifespan=lifespan)
app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")


@app.get("/", response_class=HTMLResponse)
def calendar_page(
    request: Request,
    year: int | None = Query(default=None, ge=MIN_GRID_YEAR, le=MAX_GRID_YEAR),
    month: int | None = Query(default=None, ge=1, le=12),
    source: str | None = None,
) -> HTMLResponse:
    settings = _get_settings(request)
    event_source = _get_source(request, source)
    view = load_month_view(event_source, *_view_month(settings, year, month))
    return templates.TemplateResponse(
        request,
        "calendar.html",
        {
            "title": settings.yaml.ui.title,
            "environment": settings.env.subteam_logs_env,
            **_build_calendar_context(settings, view),
        },
    )


@app.get("/partials/calendar", response_class=HTMLResponse)
def partial_calendar(
    request: Request,
    year: int | None = Query(default=None, ge=MIN_GRID_YEAR, le=MAX_GRID_YEAR),
    month: int | None = Query(default=None, ge=1, le=12),
    source: str | None = None,
) -> HTMLResponse:
    settings = _get_settings(request)
    event_source = _get_source(request, source)
    view = load_month_view(event_source, *_view_month(settings, year, month))
    return templates.TemplateResponse(
        request,
        "components/calendar_grid.html",
        _build_calendar_context(settings, view),
    )


@app.get("/modals/day/{iso_date}", response_class=HTMLResponse)
def day_modal(
    request: Request,
    iso_date: str,
    category: str | None = None,
    source: str | None = None,
) -> HTMLResponse:
    settings = _get_settings(request)
    event_source = _get_source(request, source)
    day = _parse_day(iso_date)
    view = load_month_view(event_source, day.year, day.month - 1)
    day_key = to_iso_date(day)
    selected_category = _resolve_category(settings, category)
    day_logs = build_day_logs(
        view.events_by_date,
        day_key,
        selected_category,
        is_authenticated=_is_authenticated(request, settings),
    )
    grouped = group_by_category(view.events_by_date.get(day_key, []), settings.yaml.calendar.categories)
    tabs = [
        {
            "category": label,
            "label": label or UNCATEGORIZED_LABEL,
            "count": len(events),
            "selected": label.casefold() == selected_category.casefold(),
        }
        for label, events in grouped.items()
    ]
    return templates.TemplateResponse(
        request,
        "components/day_modal.html",
        {
            "modal_date": day_key,
            "modal_source_id": view.source_id,
            "modal_failed": view.failed,
            "modal_tabs": tabs,
            "modal_logs": day_logs,
        },
    )


@app.get("/api/calendar", response_class=JSONResponse)
def calendar_api(
    request: Request,
    year: int | None = Query(default=None, ge=MIN_GRID_YEAR, le=MAX_GRID_YEAR),
    month: int | None = Query(default=None, ge=1, le=12),
    source: str | None = None,
) -> JSONResponse:
    settings = _get_settings(request)
    event_source = _get_source(request, source)
    view = load_month_view(event_source, *_view_month(settings, year, month))
    return JSONResponse(view.model_dump(mode="json"))


@app.get("/api/calendar/{iso_date}/logs", response_class=JSONResponse)
def day_logs_api(
    request: Request,
    iso_date: str,
    category: str | None = None,
    source: str | None = None,
) -> JSONResponse:
    settings = _get_settings(request)
    event_source = _get_source(request, source)
    day = _parse_day(iso_date)
    view = load_month_view(event_source, day.year, day.month - 1)
    day_logs = build_day_logs(
        view.events_by_date,
        to_iso_date(day),
        _resolve_category(settings, category),
        is_authenticated=_is_authenticated(request, settings),
    )
    return JSONResponse(day_logs.model_dump(mode="json"))


@app.get("/health", response_class=JSONResponse)
async def health(request: Request) -> JSONResponse:
    settings = _get_settings(request)
    return JSONResponse(
        {
            "status": "ok",
            "service": "subteam-logs",
            "environment": settings.env.subteam_logs_env,
            "timezone": settings.env.subteam_logs_timezone,
            "sources": [source.id for source in settings.yaml.calendar.sources],
            "default_source": settings.yaml.calendar.default_source,
            "categories": settings.yaml.calendar.categories,
            "started_at_utc": request.app.state.started_at_utc.isoformat(),
            "timestamp_utc": datetime.now(timezone.utc).isoformat(),
        }
    )
