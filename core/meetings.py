"""
Meeting lifecycle service.

Coordinates the meeting store and the creator's Google Calendar. The
database is the source of truth: calendar calls happen after the store
change commits, are attempted once, and their failures are logged and
swallowed so they never change the caller-visible result.
"""

import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection

from core.calendar import (
    SyncOutcome,
    create_event,
    delete_event_with_fallback,
    is_calendar_configured,
    update_event,
)
from core.calendar.client import log_calendar_error
from core.config import (
    calendar_conference_links_enabled,
    get_calendar_delete_window_minutes,
    get_calendar_send_updates,
)
from core.database import get_connection, get_transaction
from core.enums import AttendeeStatus
from core.queries.attendees import (
    add_attendee,
    get_attendee,
    get_attendees_for_meetings,
    remove_attendee,
)
from core.queries.meetings import (
    create_meeting as db_create_meeting,
    delete_meeting as db_delete_meeting,
    get_creators,
    get_meeting,
    get_meeting_for_sync,
    list_upcoming_meetings,
    set_google_event_id,
    update_meeting,
)
from core.queries.users import get_user

logger = logging.getLogger(__name__)

ALREADY_JOINED_NOTE = "Already joined"
JOIN_FAILED_NOTE = "Join failed"


class MeetingError(Exception):
    """Base exception for meeting lifecycle errors."""
    pass


class MeetingNotFoundError(MeetingError):
    """No meeting with the given ID."""
    pass


class MeetingForbiddenError(MeetingError):
    """Actor is neither the meeting's creator nor an admin."""
    pass


class MeetingEndedError(MeetingError):
    """The meeting's end time has passed."""
    pass


class InvalidMeetingTimesError(MeetingError):
    """A patch would leave start_time at or after end_time."""
    pass


class UnknownUserError(MeetingError):
    """Authenticated actor has no user record."""
    pass


class JoinOutcome(str, enum.Enum):
    created = "created"
    already_exists = "already_exists"
    rejected = "rejected"


@dataclass
class JoinResult:
    outcome: JoinOutcome
    attendee: dict | None = None
    note: str | None = None


@dataclass
class MeetingFilters:
    """Listing filters. All are optional and combine with AND."""

    q: str | None = None
    subject: str | None = None
    level: str | None = None
    specialization: str | None = None
    start_from: datetime | None = None
    start_to: datetime | None = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _require_user_id(actor: dict | None) -> int:
    if not actor or actor.get("user_id") is None:
        raise UnknownUserError("Not authenticated")
    return actor["user_id"]


def can_modify(meeting: dict, actor: dict | None) -> bool:
    """Creator or admin may patch/delete a meeting."""
    if not actor:
        return False
    if actor.get("is_admin"):
        return True
    user_id = actor.get("user_id")
    return user_id is not None and user_id == meeting["created_by_id"]


async def _hydrate(conn: AsyncConnection, rows: list[dict]) -> list[dict]:
    """Attach ``attendees`` and ``created_by`` to each meeting row."""
    meeting_ids = [row["meeting_id"] for row in rows]
    attendees = await get_attendees_for_meetings(conn, meeting_ids)
    creators = await get_creators(conn, [row["created_by_id"] for row in rows])

    hydrated = []
    for row in rows:
        meeting = {k: v for k, v in row.items() if k != "creator_refresh_token"}
        meeting["attendees"] = attendees.get(row["meeting_id"], [])
        meeting["created_by"] = creators.get(row["created_by_id"])
        hydrated.append(meeting)
    return hydrated


# =====================================================
# Best-effort calendar attempts
# =====================================================


async def _attempt_calendar_create(
    creator: dict, meeting: dict
) -> tuple[SyncOutcome, str | None]:
    if not creator.get("refresh_token") or not is_calendar_configured():
        return SyncOutcome.skipped, None

    try:
        event_id = await create_event(
            creator,
            title=meeting["title"],
            start=meeting["start_time"],
            end=meeting["end_time"],
            description=meeting.get("description"),
            location=meeting.get("location"),
            online_url=meeting.get("online_url"),
            with_conference=calendar_conference_links_enabled(),
        )
    except Exception as e:
        log_calendar_error(
            e, operation="create_event", context={"meeting_id": meeting["meeting_id"]}
        )
        return SyncOutcome.failed, None

    if not event_id:
        logger.warning(
            "Calendar returned no event ID for meeting %s", meeting["meeting_id"]
        )
        return SyncOutcome.skipped, None
    return SyncOutcome.synced, event_id


async def _attempt_calendar_update(
    refresh_token: str, event_id: str, meeting: dict
) -> SyncOutcome:
    try:
        return await update_event(
            refresh_token,
            event_id,
            {
                "summary": meeting["title"],
                "description": meeting.get("description"),
                "online_url": meeting.get("online_url"),
                "location": meeting.get("location"),
                "start": meeting["start_time"],
                "end": meeting["end_time"],
            },
            send_updates=get_calendar_send_updates(),
        )
    except Exception as e:
        log_calendar_error(
            e,
            operation="update_event",
            context={"meeting_id": meeting["meeting_id"], "event_id": event_id},
        )
        return SyncOutcome.failed


async def _attempt_calendar_cleanup(meeting: dict, window_minutes: int) -> SyncOutcome:
    # Cleanup must never block local deletion, so failures are only debug-logged
    try:
        return await delete_event_with_fallback(
            meeting.get("creator_refresh_token"),
            google_event_id=meeting.get("google_event_id"),
            title=meeting["title"],
            start=meeting["start_time"],
            end=meeting["end_time"],
            window_minutes=window_minutes,
            send_updates=get_calendar_send_updates(),
        )
    except Exception as e:
        logger.debug(
            "Calendar cleanup for meeting %s failed: %s", meeting["meeting_id"], e
        )
        return SyncOutcome.failed


# =====================================================
# Lifecycle operations
# =====================================================


async def list_meetings(
    filters: MeetingFilters | None = None,
    now: datetime | None = None,
) -> list[dict]:
    """
    List meetings that have not ended, ordered by start time.

    Meetings with end_time <= now are never returned, whatever the filters.
    """
    filters = filters or MeetingFilters()
    async with get_connection() as conn:
        rows = await list_upcoming_meetings(
            conn,
            now=now or _utcnow(),
            q=filters.q,
            subject=filters.subject,
            level=filters.level,
            specialization=filters.specialization,
            start_from=filters.start_from,
            start_to=filters.start_to,
        )
        return await _hydrate(conn, rows)


async def get_meeting_detail(meeting_id: int) -> dict:
    """Get one meeting with attendees and creator. Ended meetings included."""
    async with get_connection() as conn:
        meeting = await get_meeting(conn, meeting_id)
        if not meeting:
            raise MeetingNotFoundError(f"Meeting {meeting_id} not found")
        [full] = await _hydrate(conn, [meeting])
    return full


async def create_meeting(payload: dict[str, Any], actor: dict) -> dict:
    """
    Create a meeting owned by the actor and enroll them as "going".

    The insert and the creator's attendee row commit together; a failure
    there propagates. Calendar sync runs afterwards and only ever adds a
    google_event_id.

    Returns:
        The full meeting (with attendees and creator)
    """
    user_id = _require_user_id(actor)

    async with get_transaction() as conn:
        creator = await get_user(conn, user_id)
        if not creator:
            raise UnknownUserError(f"User {user_id} not found")

        meeting = await db_create_meeting(conn, created_by_id=user_id, **payload)
        await add_attendee(conn, meeting["meeting_id"], user_id, AttendeeStatus.going)

    meeting_id = meeting["meeting_id"]
    logger.info("Meeting %s created by user %s", meeting_id, user_id)

    outcome, event_id = await _attempt_calendar_create(creator, meeting)
    if event_id:
        try:
            async with get_transaction() as conn:
                await set_google_event_id(conn, meeting_id, event_id)
        except SQLAlchemyError as e:
            # Event exists but is untracked; delete falls back to a title search
            logger.warning(
                "Could not store calendar event %s for meeting %s: %s",
                event_id,
                meeting_id,
                e,
            )
    logger.debug("Calendar create for meeting %s: %s", meeting_id, outcome.value)

    return await get_meeting_detail(meeting_id)


async def patch_meeting(meeting_id: int, payload: dict[str, Any], actor: dict) -> dict:
    """
    Apply a partial update. Only keys present in ``payload`` change;
    a key with value None clears that field.

    Raises:
        MeetingNotFoundError, MeetingForbiddenError, InvalidMeetingTimesError
    """
    async with get_transaction() as conn:
        existing = await get_meeting_for_sync(conn, meeting_id)
        if not existing:
            raise MeetingNotFoundError(f"Meeting {meeting_id} not found")
        if not can_modify(existing, actor):
            raise MeetingForbiddenError("Only the creator or an admin can edit")

        start = payload.get("start_time") or existing["start_time"]
        end = payload.get("end_time") or existing["end_time"]
        if start >= end:
            raise InvalidMeetingTimesError("end_time must be after start_time")

        updated = await update_meeting(conn, meeting_id, payload)
        if updated is None:
            raise MeetingNotFoundError(f"Meeting {meeting_id} not found")
        [full] = await _hydrate(conn, [updated])

    event_id = existing.get("google_event_id")
    refresh_token = existing.get("creator_refresh_token")
    if event_id and refresh_token:
        outcome = await _attempt_calendar_update(refresh_token, event_id, updated)
        logger.debug("Calendar update for meeting %s: %s", meeting_id, outcome.value)

    return full


async def delete_meeting(
    meeting_id: int,
    actor: dict,
    window_minutes: int | None = None,
) -> None:
    """
    Delete a meeting and its attendees.

    Calendar cleanup is attempted first (by event ID, else by title within
    a padded window) and can never stop the local delete, which removes
    attendees and the meeting in one transaction.
    """
    async with get_connection() as conn:
        existing = await get_meeting_for_sync(conn, meeting_id)
    if not existing:
        raise MeetingNotFoundError(f"Meeting {meeting_id} not found")
    if not can_modify(existing, actor):
        raise MeetingForbiddenError("Only the creator or an admin can delete")

    if window_minutes is None:
        window_minutes = get_calendar_delete_window_minutes()
    await _attempt_calendar_cleanup(existing, window_minutes)

    async with get_transaction() as conn:
        deleted = await db_delete_meeting(conn, meeting_id)

    if not deleted:
        raise MeetingNotFoundError(f"Meeting {meeting_id} not found")
    logger.info("Meeting %s deleted by user %s", meeting_id, actor.get("user_id"))


async def join_meeting(
    meeting_id: int,
    actor: dict,
    now: datetime | None = None,
) -> JoinResult:
    """
    Add the actor as an attendee.

    Joining twice is not an error: the second call reports already_exists
    with ALREADY_JOINED_NOTE. Concurrent duplicates resolve the same way.

    Any other constraint violation (e.g. the meeting was deleted in the
    meantime) comes back as rejected.

    Once a meeting has ended nothing is inserted; an existing attendee
    still gets already_exists.

    Raises:
        MeetingNotFoundError, MeetingEndedError (now >= end_time)
    """
    user_id = _require_user_id(actor)

    async with get_connection() as conn:
        meeting = await get_meeting(conn, meeting_id)
        if not meeting:
            raise MeetingNotFoundError(f"Meeting {meeting_id} not found")
        if (now or _utcnow()) >= meeting["end_time"]:
            if await get_attendee(conn, meeting_id, user_id):
                return JoinResult(JoinOutcome.already_exists, note=ALREADY_JOINED_NOTE)
            raise MeetingEndedError("Meeting already ended")

    try:
        async with get_transaction() as conn:
            attendee = await add_attendee(conn, meeting_id, user_id)
    except IntegrityError as e:
        logger.info("Join rejected for user %s on meeting %s: %s", user_id, meeting_id, e)
        return JoinResult(JoinOutcome.rejected, note=JOIN_FAILED_NOTE)

    if attendee is None:
        return JoinResult(JoinOutcome.already_exists, note=ALREADY_JOINED_NOTE)
    return JoinResult(JoinOutcome.created, attendee=attendee)


async def leave_meeting(meeting_id: int, actor: dict) -> int:
    """
    Remove the actor's attendance. Idempotent.

    Returns:
        Rows removed (0 when the actor was not attending)
    """
    user_id = _require_user_id(actor)
    async with get_transaction() as conn:
        return await remove_attendee(conn, meeting_id, user_id)
