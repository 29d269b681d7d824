from __future__ import annotations

import logging

from .adapters.events import EventSource, GoogleCalendarProxySource, LocalEventSource
from .settings import AppSettings, EventSourceSettings

LOGGER = logging.getLogger(__name__)


def _build_event_source(source: EventSourceSettings, settings: AppSettings) -> EventSource:
    if source.type == "local":
        source_path = source.path
        if source_path is not None and not source_path.is_absolute():
            source_path = (settings.project_root / source_path).resolve()
        return LocalEventSource(source_id=source.id, path=source_path)

    if source.type == "google_proxy":
        if source.url is None:
            raise ValueError("event source url was missing for type 'google_proxy'")
        return GoogleCalendarProxySource(
            url=source.url,
            source_id=source.id,
            default_category=source.default_category,
            timeout_seconds=source.timeout_seconds,
        )

    raise ValueError(f"Unsupported event source type: {source.type}")


def build_event_sources(settings: AppSettings) -> dict[str, EventSource]:
    sources: dict[str, EventSource] = {}
    for source in settings.yaml.calendar.sources:
        sources[source.id] = _build_event_source(source, settings)
        LOGGER.debug("Configured event source '%s' (%s)", source.id, source.type)
    return sources
