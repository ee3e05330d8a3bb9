"""
JWT authentication utilities for the web API.

Security measures implemented:
- HS256 signing algorithm with 256-bit secret
- Token expiration (7 days)
- HttpOnly cookies (set in routes)
"""

import os
from datetime import datetime, timedelta, timezone

import jwt
from fastapi import Depends, HTTPException, Request, Response

from core.config import is_production
from core.enums import UserRole

JWT_SECRET = os.environ.get("JWT_SECRET")
JWT_ALGORITHM = "HS256"
JWT_EXPIRATION_HOURS = 24 * 7
SESSION_COOKIE = "session"


def create_jwt(user_id: int, name: str | None, is_admin: bool = False) -> str:
    """
    Create a signed JWT token for an authenticated user.

    Args:
        user_id: Database user ID (stored as the ``sub`` claim)
        name: Display name
        is_admin: Whether the user has the admin role

    Returns:
        Signed JWT token string
    """
    if not JWT_SECRET:
        raise ValueError("JWT_SECRET environment variable not set")

    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "name": name,
        "role": UserRole.admin.value if is_admin else UserRole.member.value,
        "iat": now,
        "exp": now + timedelta(hours=JWT_EXPIRATION_HOURS),
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def verify_jwt(token: str) -> dict | None:
    """
    Verify and decode a JWT token.

    Returns:
        Decoded payload dict if valid, None if invalid
    """
    if not JWT_SECRET:
        raise ValueError("JWT_SECRET environment variable not set")

    try:
        return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except jwt.InvalidTokenError:
        return None


def set_session_cookie(response: Response, token: str) -> None:
    """Set the session cookie with the JWT token."""
    response.set_cookie(
        key=SESSION_COOKIE,
        value=token,
        httponly=True,
        secure=is_production(),
        samesite="lax",
        max_age=60 * 60 * JWT_EXPIRATION_HOURS,
    )


async def get_current_user(request: Request) -> dict:
    """
    FastAPI dependency to get the current authenticated user.

    Extracts the session cookie and validates the JWT.

    Raises:
        HTTPException: 401 if not authenticated or invalid token
    """
    token = request.cookies.get(SESSION_COOKIE)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    payload = verify_jwt(token)
    if not payload:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    return payload


async def get_optional_user(request: Request) -> dict | None:
    """
    FastAPI dependency to optionally get the current user.

    Returns None if not authenticated instead of raising an exception.
    """
    token = request.cookies.get(SESSION_COOKIE)
    if not token:
        return None

    return verify_jwt(token)


def actor_from_payload(payload: dict) -> dict:
    """Turn JWT claims into the actor dict the core expects."""
    try:
        user_id = int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid session")
    return {
        "user_id": user_id,
        "is_admin": payload.get("role") == UserRole.admin.value,
    }


async def get_current_actor(user: dict = Depends(get_current_user)) -> dict:
    """FastAPI dependency: the authenticated actor ({user_id, is_admin})."""
    return actor_from_payload(user)
