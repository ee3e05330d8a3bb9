"""
Google Calendar event operations for mirrored meetings.

Every operation acts on one user's primary calendar. "Already gone"
responses (404/410) count as success, so repeating an update or delete is
never an error. Any other provider error propagates to the caller.
"""

import asyncio
import enum
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from googleapiclient.errors import HttpError

from .client import CALENDAR_ID, get_calendar_service, is_gone_error

logger = logging.getLogger(__name__)

# Cap on events removed by a single title search
MAX_QUERY_DELETES = 5


class SyncOutcome(str, enum.Enum):
    synced = "synced"
    already_gone = "already_gone"  # provider says the event no longer exists
    skipped = "skipped"  # no credential, nothing attempted
    failed = "failed"  # unexpected error, logged by whoever caught it


def _rfc3339(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def _describe(description: str | None, online_url: str | None) -> str | None:
    """Event description, with the online link appended when there is one."""
    if online_url:
        link = f"Join online: {online_url}"
        return f"{description}\n\n{link}" if description else link
    return description or None


def build_patch_body(fields: dict[str, Any]) -> dict[str, Any]:
    """
    Translate meeting fields into a Calendar events.patch body.

    Recognized keys: summary, description, online_url, location, start, end.
    An empty summary is left out (events must keep a title); an explicit
    None/empty description or location clears it on the event.
    """
    body: dict[str, Any] = {}
    if fields.get("summary"):
        body["summary"] = fields["summary"]
    if "description" in fields or "online_url" in fields:
        body["description"] = (
            _describe(fields.get("description"), fields.get("online_url")) or ""
        )
    if "location" in fields:
        body["location"] = fields["location"] or ""
    if fields.get("start"):
        body["start"] = {"dateTime": _rfc3339(fields["start"])}
    if fields.get("end"):
        body["end"] = {"dateTime": _rfc3339(fields["end"])}
    return body


async def create_event(
    creator: dict,
    title: str,
    start: datetime,
    end: datetime,
    description: str | None = None,
    location: str | None = None,
    online_url: str | None = None,
    with_conference: bool = False,
) -> str | None:
    """
    Create an event on the creator's calendar.

    Args:
        creator: User row; its ``refresh_token`` authorizes the call
        title: Event summary
        start, end: Event bounds (timezone-aware)
        with_conference: Ask Google to attach a Meet link

    Returns:
        The Google event ID, or None when the creator has no refresh token
        (no request is made) or Google returned no ID.
    """
    service = get_calendar_service(creator.get("refresh_token"))
    if not service:
        return None

    event: dict[str, Any] = {
        "summary": title,
        "start": {"dateTime": _rfc3339(start)},
        "end": {"dateTime": _rfc3339(end)},
    }
    text = _describe(description, online_url)
    if text:
        event["description"] = text
    if location:
        event["location"] = location

    insert_kwargs: dict[str, Any] = {"calendarId": CALENDAR_ID, "body": event}
    if with_conference:
        event["conferenceData"] = {
            "createRequest": {
                "requestId": uuid.uuid4().hex,
                "conferenceSolutionKey": {"type": "hangoutsMeet"},
            }
        }
        insert_kwargs["conferenceDataVersion"] = 1

    def _sync_insert():
        return service.events().insert(**insert_kwargs).execute()

    result = await asyncio.to_thread(_sync_insert)
    return (result or {}).get("id") or None


async def update_event(
    refresh_token: str | None,
    event_id: str,
    fields: dict[str, Any],
    send_updates: str = "all",
) -> SyncOutcome:
    """
    Patch an existing event (title / description / location / times).

    Returns:
        synced, already_gone (404/410), or skipped (no credential or no
        changed fields). Other errors raise.
    """
    service = get_calendar_service(refresh_token)
    if not service:
        return SyncOutcome.skipped

    body = build_patch_body(fields)
    if not body:
        return SyncOutcome.skipped

    def _sync_patch():
        return (
            service.events()
            .patch(
                calendarId=CALENDAR_ID,
                eventId=event_id,
                body=body,
                sendUpdates=send_updates,
            )
            .execute()
        )

    try:
        await asyncio.to_thread(_sync_patch)
    except HttpError as e:
        if is_gone_error(e):
            logger.info("Calendar event %s already gone, nothing to update", event_id)
            return SyncOutcome.already_gone
        raise
    return SyncOutcome.synced


async def delete_event(
    refresh_token: str | None,
    event_id: str,
    send_updates: str = "all",
) -> SyncOutcome:
    """Delete an event by ID. 404/410 count as already_gone."""
    service = get_calendar_service(refresh_token)
    if not service:
        return SyncOutcome.skipped

    def _sync_delete():
        return (
            service.events()
            .delete(calendarId=CALENDAR_ID, eventId=event_id, sendUpdates=send_updates)
            .execute()
        )

    try:
        await asyncio.to_thread(_sync_delete)
    except HttpError as e:
        if is_gone_error(e):
            return SyncOutcome.already_gone
        raise
    return SyncOutcome.synced


async def delete_events_by_query(
    refresh_token: str | None,
    title: str,
    time_min: datetime,
    time_max: datetime,
    max_results: int = MAX_QUERY_DELETES,
) -> int:
    """
    Delete events whose text matches ``title`` within [time_min, time_max].

    This is a heuristic for events whose ID was never stored: it may hit an
    unrelated event with a similar title in the same window, and it stops
    after ``max_results`` matches (earliest first).

    Returns:
        Number of events deleted (already-gone events are not counted).
    """
    service = get_calendar_service(refresh_token)
    if not service:
        return 0

    def _sync_list():
        return (
            service.events()
            .list(
                calendarId=CALENDAR_ID,
                q=title,
                timeMin=_rfc3339(time_min),
                timeMax=_rfc3339(time_max),
                singleEvents=True,
                orderBy="startTime",
                maxResults=max_results,
            )
            .execute()
        )

    listing = await asyncio.to_thread(_sync_list)

    deleted = 0
    for item in (listing or {}).get("items", [])[:max_results]:
        event_id = item.get("id")
        if not event_id:
            continue

        def _sync_delete(event_id=event_id):
            return (
                service.events()
                .delete(calendarId=CALENDAR_ID, eventId=event_id)
                .execute()
            )

        try:
            await asyncio.to_thread(_sync_delete)
            deleted += 1
        except HttpError as e:
            if not is_gone_error(e):
                raise

    return deleted


async def delete_event_with_fallback(
    refresh_token: str | None,
    google_event_id: str | None,
    title: str,
    start: datetime,
    end: datetime,
    window_minutes: int = 60,
    send_updates: str = "all",
) -> SyncOutcome:
    """
    Remove a meeting's calendar event, never raising.

    Deletes by ID when one is known; otherwise searches the creator's
    calendar for ``title`` between start - window and end + window.
    """
    if not refresh_token:
        return SyncOutcome.skipped

    try:
        if google_event_id:
            return await delete_event(
                refresh_token, google_event_id, send_updates=send_updates
            )

        window = timedelta(minutes=window_minutes)
        deleted = await delete_events_by_query(
            refresh_token,
            title=title,
            time_min=start - window,
            time_max=end + window,
        )
        return SyncOutcome.synced if deleted else SyncOutcome.already_gone
    except Exception as e:
        logger.debug("Calendar cleanup for '%s' failed: %s", title, e)
        return SyncOutcome.failed
