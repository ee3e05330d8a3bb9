"""Database queries for meeting attendance."""

from datetime import datetime

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncConnection

from ..enums import AttendeeStatus
from ..tables import meeting_attendees, meetings

ATTENDEE_UNIQUE_CONSTRAINT = "meeting_attendees_meeting_user_unique"


async def add_attendee(
    conn: AsyncConnection,
    meeting_id: int,
    user_id: int,
    status: AttendeeStatus = AttendeeStatus.going,
) -> dict | None:
    """
    Insert an attendee row.

    Uses ON CONFLICT DO NOTHING on the (meeting_id, user_id) constraint so
    concurrent duplicate joins never raise.

    Returns:
        The new row, or None if the user already attends the meeting.
        Other integrity errors (unknown meeting or user) propagate.
    """
    stmt = (
        insert(meeting_attendees)
        .values(meeting_id=meeting_id, user_id=user_id, status=status)
        .on_conflict_do_nothing(constraint=ATTENDEE_UNIQUE_CONSTRAINT)
        .returning(meeting_attendees)
    )
    result = await conn.execute(stmt)
    row = result.mappings().first()
    return dict(row) if row else None


async def get_attendee(
    conn: AsyncConnection,
    meeting_id: int,
    user_id: int,
) -> dict | None:
    """Get a user's attendee row for a meeting, if any."""
    result = await conn.execute(
        select(meeting_attendees).where(
            meeting_attendees.c.meeting_id == meeting_id,
            meeting_attendees.c.user_id == user_id,
        )
    )
    row = result.mappings().first()
    return dict(row) if row else None


async def remove_attendee(
    conn: AsyncConnection,
    meeting_id: int,
    user_id: int,
) -> int:
    """Delete a user's attendance. Returns rows removed (0 if none existed)."""
    result = await conn.execute(
        delete(meeting_attendees).where(
            meeting_attendees.c.meeting_id == meeting_id,
            meeting_attendees.c.user_id == user_id,
        )
    )
    return result.rowcount


async def get_attendees_for_meetings(
    conn: AsyncConnection,
    meeting_ids: list[int],
) -> dict[int, list[dict]]:
    """Attendee rows grouped by meeting_id, in join order."""
    grouped: dict[int, list[dict]] = {meeting_id: [] for meeting_id in meeting_ids}
    if not meeting_ids:
        return grouped

    result = await conn.execute(
        select(meeting_attendees)
        .where(meeting_attendees.c.meeting_id.in_(meeting_ids))
        .order_by(meeting_attendees.c.created_at, meeting_attendees.c.attendee_id)
    )
    for row in result.mappings():
        grouped.setdefault(row["meeting_id"], []).append(dict(row))
    return grouped


async def get_attended_meetings(
    conn: AsyncConnection,
    user_id: int,
) -> list[dict]:
    """Subject, level and specialization of every meeting the user attends."""
    result = await conn.execute(
        select(
            meetings.c.meeting_id,
            meetings.c.subject,
            meetings.c.level,
            meetings.c.specialization,
        )
        .select_from(
            meeting_attendees.join(
                meetings, meeting_attendees.c.meeting_id == meetings.c.meeting_id
            )
        )
        .where(meeting_attendees.c.user_id == user_id)
    )
    return [dict(row) for row in result.mappings()]


async def get_upcoming_with_counts(
    conn: AsyncConnection,
    now: datetime,
    limit: int,
    exclude_user_id: int | None = None,
) -> list[dict]:
    """
    The first ``limit`` meetings (by start time) that have not ended,
    each with an ``attendee_count``.

    With exclude_user_id, meetings that user already attends are skipped
    before the limit is applied.
    """
    conditions = [meetings.c.end_time > now]
    if exclude_user_id is not None:
        joined = select(meeting_attendees.c.meeting_id).where(
            meeting_attendees.c.user_id == exclude_user_id
        )
        conditions.append(meetings.c.meeting_id.not_in(joined))

    count = func.count(meeting_attendees.c.attendee_id).label("attendee_count")
    result = await conn.execute(
        select(meetings, count)
        .select_from(
            meetings.outerjoin(
                meeting_attendees,
                meeting_attendees.c.meeting_id == meetings.c.meeting_id,
            )
        )
        .where(*conditions)
        .group_by(meetings.c.meeting_id)
        .order_by(meetings.c.start_time, meetings.c.meeting_id)
        .limit(limit)
    )
    return [dict(row) for row in result.mappings()]
