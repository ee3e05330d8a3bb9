"""Google Calendar mirroring of meetings, per creator's delegated calendar."""

from .client import get_calendar_service, is_calendar_configured, is_gone_error
from .events import (
    SyncOutcome,
    create_event,
    update_event,
    delete_event,
    delete_events_by_query,
    delete_event_with_fallback,
)

__all__ = [
    "get_calendar_service",
    "is_calendar_configured",
    "is_gone_error",
    "SyncOutcome",
    "create_event",
    "update_event",
    "delete_event",
    "delete_events_by_query",
    "delete_event_with_fallback",
]
