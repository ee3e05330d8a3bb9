"""Database queries for meetings."""

from datetime import datetime
from typing import Any

from sqlalchemy import and_, delete, func, insert, or_, select, update
from sqlalchemy.ext.asyncio import AsyncConnection

from ..tables import meeting_attendees, meetings, users

# Columns a meeting may be created or patched with
MEETING_FIELDS = (
    "title",
    "description",
    "subject",
    "level",
    "specialization",
    "start_time",
    "end_time",
    "location",
    "online_url",
)


async def list_upcoming_meetings(
    conn: AsyncConnection,
    now: datetime,
    q: str | None = None,
    subject: str | None = None,
    level: str | None = None,
    specialization: str | None = None,
    start_from: datetime | None = None,
    start_to: datetime | None = None,
) -> list[dict]:
    """
    Get meetings that have not ended yet, ordered by start time.

    The end_time > now restriction is always applied on top of the filters.
    """
    conditions = [meetings.c.end_time > now]

    if subject:
        conditions.append(meetings.c.subject.icontains(subject, autoescape=True))
    if level:
        conditions.append(meetings.c.level == level)
    if specialization:
        conditions.append(meetings.c.specialization == specialization)
    if start_from:
        conditions.append(meetings.c.start_time >= start_from)
    if start_to:
        conditions.append(meetings.c.start_time <= start_to)
    if q:
        conditions.append(
            or_(
                meetings.c.title.icontains(q, autoescape=True),
                meetings.c.description.icontains(q, autoescape=True),
                meetings.c.subject.icontains(q, autoescape=True),
            )
        )

    result = await conn.execute(
        select(meetings)
        .where(and_(*conditions))
        .order_by(meetings.c.start_time, meetings.c.meeting_id)
    )
    return [dict(row) for row in result.mappings()]


async def get_meeting(
    conn: AsyncConnection,
    meeting_id: int,
) -> dict | None:
    """Get a single meeting by ID."""
    result = await conn.execute(
        select(meetings).where(meetings.c.meeting_id == meeting_id)
    )
    row = result.mappings().first()
    return dict(row) if row else None


async def get_meeting_for_sync(
    conn: AsyncConnection,
    meeting_id: int,
) -> dict | None:
    """
    Get a meeting together with its creator's calendar credential.

    The extra key ``creator_refresh_token`` is None when the creator
    never granted calendar access.
    """
    result = await conn.execute(
        select(meetings, users.c.refresh_token.label("creator_refresh_token"))
        .select_from(
            meetings.join(users, meetings.c.created_by_id == users.c.user_id)
        )
        .where(meetings.c.meeting_id == meeting_id)
    )
    row = result.mappings().first()
    return dict(row) if row else None


async def create_meeting(
    conn: AsyncConnection,
    created_by_id: int,
    **fields: Any,
) -> dict:
    """
    Create a meeting record.

    Returns:
        The inserted row
    """
    values = {k: v for k, v in fields.items() if k in MEETING_FIELDS}
    result = await conn.execute(
        insert(meetings)
        .values(created_by_id=created_by_id, **values)
        .returning(meetings)
    )
    return dict(result.mappings().one())


async def update_meeting(
    conn: AsyncConnection,
    meeting_id: int,
    fields: dict[str, Any],
) -> dict | None:
    """Apply a partial update. Keys outside MEETING_FIELDS are ignored."""
    values = {k: v for k, v in fields.items() if k in MEETING_FIELDS}
    result = await conn.execute(
        update(meetings)
        .where(meetings.c.meeting_id == meeting_id)
        .values(**values, updated_at=func.now())
        .returning(meetings)
    )
    row = result.mappings().first()
    return dict(row) if row else None


async def set_google_event_id(
    conn: AsyncConnection,
    meeting_id: int,
    google_event_id: str,
) -> None:
    """Store the calendar event ID after a successful sync."""
    await conn.execute(
        update(meetings)
        .where(meetings.c.meeting_id == meeting_id)
        .values(google_event_id=google_event_id, updated_at=func.now())
    )


async def delete_meeting(
    conn: AsyncConnection,
    meeting_id: int,
) -> int:
    """
    Delete a meeting and all of its attendee rows.

    Must run inside a transaction so both deletes commit together.

    Returns:
        Number of meeting rows deleted (0 or 1)
    """
    await conn.execute(
        delete(meeting_attendees).where(meeting_attendees.c.meeting_id == meeting_id)
    )
    result = await conn.execute(
        delete(meetings).where(meetings.c.meeting_id == meeting_id)
    )
    return result.rowcount


async def get_creators(
    conn: AsyncConnection,
    user_ids: list[int],
) -> dict[int, dict]:
    """Public profile of each creator, keyed by user_id."""
    if not user_ids:
        return {}
    result = await conn.execute(
        select(
            users.c.user_id,
            users.c.name,
            users.c.email,
            users.c.avatar,
        ).where(users.c.user_id.in_(set(user_ids)))
    )
    return {row["user_id"]: dict(row) for row in result.mappings()}
