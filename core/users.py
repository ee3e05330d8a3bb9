"""
User management for Google sign-in.

All functions are async and use the database.
"""

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from .database import get_connection, get_transaction
from .queries import users as user_queries

logger = logging.getLogger(__name__)

# Columns safe to return to clients (no refresh_token)
PUBLIC_USER_FIELDS = (
    "user_id",
    "email",
    "name",
    "avatar",
    "is_admin",
    "last_seen_at",
    "created_at",
)


def public_user(user: dict[str, Any]) -> dict[str, Any]:
    """Strip credentials from a user row, adding ``calendar_connected``."""
    data = {k: user.get(k) for k in PUBLIC_USER_FIELDS}
    data["calendar_connected"] = bool(user.get("refresh_token"))
    return data


async def get_user(user_id: int) -> dict[str, Any] | None:
    async with get_connection() as conn:
        return await user_queries.get_user(conn, user_id)


async def upsert_google_user(
    google_id: str,
    email: str | None,
    name: str | None = None,
    avatar: str | None = None,
    refresh_token: str | None = None,
) -> dict[str, Any]:
    """
    Create or update a user after a Google OAuth login.

    Matches on google_id first, then email (first login of a user who was
    created some other way). Google only returns a refresh token when consent
    is forced, so an existing token is kept unless a new one arrives.

    Returns:
        The user record from the database
    """
    async with get_transaction() as conn:
        existing = await user_queries.find_google_user(conn, google_id, email)

        if not existing:
            if not email:
                raise ValueError("Google account has no email address")
            fields: dict[str, Any] = {
                "google_id": google_id,
                "name": name,
                "avatar": avatar,
            }
            if refresh_token:
                fields["refresh_token"] = refresh_token
            user = await user_queries.create_user(conn, email=email, **fields)
            logger.info("Created user %s for Google account", user["user_id"])
            return user

        updates: dict[str, Any] = {}
        if not existing.get("google_id"):
            updates["google_id"] = google_id
        if email and existing.get("email") != email:
            updates["email"] = email
        if name and existing.get("name") != name:
            updates["name"] = name
        if avatar and existing.get("avatar") != avatar:
            updates["avatar"] = avatar
        if refresh_token:
            updates["refresh_token"] = refresh_token

        if not updates:
            return existing
        return await user_queries.update_user(conn, existing["user_id"], **updates)


async def touch_last_seen(user_id: int) -> None:
    """Record activity for a user. Never raises on database errors."""
    try:
        async with get_transaction() as conn:
            await user_queries.touch_last_seen(conn, user_id, datetime.now(timezone.utc))
    except (SQLAlchemyError, OSError) as e:
        logger.debug("Could not update last_seen_at for user %s: %s", user_id, e)
