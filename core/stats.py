"""Platform activity counters for the public stats endpoint."""

from datetime import datetime, timedelta, timezone

from sqlalchemy import distinct, func, select

from core.database import get_connection
from core.tables import meetings, users


async def get_platform_stats(now: datetime | None = None) -> dict[str, int]:
    """
    Count users and meetings.

    Returns:
        total_users, active_users_24h, active_users_7d, upcoming_meetings
        (start in the future), week_meetings (start within the next 7 days),
        subjects_count (distinct non-null subjects)
    """
    now = now or datetime.now(timezone.utc)
    day_ago = now - timedelta(hours=24)
    week_ago = now - timedelta(days=7)
    week_ahead = now + timedelta(days=7)

    query = select(
        select(func.count()).select_from(users).scalar_subquery().label("total_users"),
        select(func.count())
        .select_from(users)
        .where(users.c.last_seen_at >= day_ago)
        .scalar_subquery()
        .label("active_24h"),
        select(func.count())
        .select_from(users)
        .where(users.c.last_seen_at >= week_ago)
        .scalar_subquery()
        .label("active_7d"),
        select(func.count())
        .select_from(meetings)
        .where(meetings.c.start_time >= now)
        .scalar_subquery()
        .label("upcoming"),
        select(func.count())
        .select_from(meetings)
        .where(meetings.c.start_time >= now, meetings.c.start_time <= week_ahead)
        .scalar_subquery()
        .label("week"),
        select(func.count(distinct(meetings.c.subject)))
        .where(meetings.c.subject.isnot(None))
        .scalar_subquery()
        .label("subjects"),
    )

    async with get_connection() as conn:
        result = await conn.execute(query)
        row = result.mappings().one()

    return {
        "total_users": row["total_users"],
        "active_users_24h": row["active_24h"],
        "active_users_7d": row["active_7d"],
        "upcoming_meetings": row["upcoming"],
        "week_meetings": row["week"],
        "subjects_count": row["subjects"],
    }
