"""User-related database queries using SQLAlchemy Core."""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import insert, or_, select, update
from sqlalchemy.ext.asyncio import AsyncConnection

from ..tables import users


async def get_user(
    conn: AsyncConnection,
    user_id: int,
) -> dict[str, Any] | None:
    """Get a user by primary key."""
    result = await conn.execute(select(users).where(users.c.user_id == user_id))
    row = result.mappings().first()
    return dict(row) if row else None


async def find_google_user(
    conn: AsyncConnection,
    google_id: str,
    email: str | None = None,
) -> dict[str, Any] | None:
    """
    Find a user by Google ID, falling back to email on first login.

    A Google ID match wins over an email match.
    """
    conditions = [users.c.google_id == google_id]
    if email:
        conditions.append(users.c.email == email)

    result = await conn.execute(select(users).where(or_(*conditions)))
    rows = [dict(row) for row in result.mappings()]
    for row in rows:
        if row["google_id"] == google_id:
            return row
    return rows[0] if rows else None


async def create_user(
    conn: AsyncConnection,
    email: str,
    **fields: Any,
) -> dict[str, Any]:
    """Create a new user and return the created record."""
    result = await conn.execute(
        insert(users).values(email=email, **fields).returning(users)
    )
    return dict(result.mappings().one())


async def update_user(
    conn: AsyncConnection,
    user_id: int,
    **updates: Any,
) -> dict[str, Any] | None:
    """Update a user by ID and return the updated record."""
    updates["updated_at"] = datetime.now(timezone.utc)
    result = await conn.execute(
        update(users)
        .where(users.c.user_id == user_id)
        .values(**updates)
        .returning(users)
    )
    row = result.mappings().first()
    return dict(row) if row else None


async def touch_last_seen(
    conn: AsyncConnection,
    user_id: int,
    seen_at: datetime | None = None,
) -> None:
    await conn.execute(
        update(users)
        .where(users.c.user_id == user_id)
        .values(last_seen_at=seen_at or datetime.now(timezone.utc))
    )
