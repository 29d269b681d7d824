from .base import EventSource, EventSourceError
from .google_proxy import GoogleCalendarProxySource
from .local import LocalEventSource

__all__ = [
    "EventSource",
    "EventSourceError",
    "GoogleCalendarProxySource",
    "LocalEventSource",
]
