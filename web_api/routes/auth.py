"""
Authentication routes for Google OAuth.

Endpoints:
- GET /auth/google - Start Google OAuth flow (offline access, calendar scope)
- GET /auth/google/callback - Handle OAuth callback
- POST /auth/logout - Clear session
- GET /auth/me - Get current user info
"""

import logging
import os
import secrets
from urllib.parse import urlencode

import httpx
from fastapi import APIRouter, HTTPException, Request, Response
from fastapi.responses import RedirectResponse

from core.calendar.client import SCOPES as CALENDAR_SCOPES
from core.config import get_frontend_url
from core.users import get_user, public_user, upsert_google_user
from web_api.auth import (
    SESSION_COOKIE,
    actor_from_payload,
    create_jwt,
    get_current_user,
    set_session_cookie,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"

# Google OAuth configuration
GOOGLE_CLIENT_ID = os.environ.get("GOOGLE_CLIENT_ID")
GOOGLE_CLIENT_SECRET = os.environ.get("GOOGLE_CLIENT_SECRET")
GOOGLE_CALLBACK_URL = os.environ.get(
    "GOOGLE_CALLBACK_URL", "http://localhost:8000/auth/google/callback"
)
FRONTEND_URL = get_frontend_url()

LOGIN_SCOPES = ["openid", "email", "profile", *CALENDAR_SCOPES]

# In-memory state storage for OAuth CSRF protection
# In production, use Redis or database
_oauth_states: dict[str, dict] = {}


def _safe_next(next_path: str | None) -> str:
    """Only allow same-site relative paths as post-login redirects."""
    if next_path and next_path.startswith("/") and not next_path.startswith("//"):
        return next_path
    return "/"


@router.get("/google")
async def google_oauth_start(next: str = "/"):
    """
    Start Google OAuth flow.

    Requests offline access with a forced consent prompt so Google returns
    a refresh token, which enables calendar sync for the user's meetings.
    """
    if not GOOGLE_CLIENT_ID:
        raise HTTPException(500, "Google OAuth not configured")

    state = secrets.token_urlsafe(32)
    _oauth_states[state] = {"next": _safe_next(next)}

    params = {
        "client_id": GOOGLE_CLIENT_ID,
        "redirect_uri": GOOGLE_CALLBACK_URL,
        "response_type": "code",
        "scope": " ".join(LOGIN_SCOPES),
        "access_type": "offline",
        "prompt": "consent",
        "include_granted_scopes": "true",
        "state": state,
    }
    return RedirectResponse(url=f"{GOOGLE_AUTH_URL}?{urlencode(params)}")


@router.get("/google/callback")
async def google_oauth_callback(
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
):
    """
    Handle Google OAuth callback.

    Exchanges the authorization code for tokens, fetches the profile,
    creates/updates the user (storing any refresh token), and sets the
    session cookie.
    """
    if error:
        return RedirectResponse(url=f"{FRONTEND_URL}/login?error={error}")

    if not code or not state:
        return RedirectResponse(url=f"{FRONTEND_URL}/login?error=missing_params")

    # Validate state (CSRF protection)
    state_data = _oauth_states.pop(state, None)
    if state_data is None:
        return RedirectResponse(url=f"{FRONTEND_URL}/login?error=invalid_state")

    if not GOOGLE_CLIENT_ID or not GOOGLE_CLIENT_SECRET:
        raise HTTPException(500, "Google OAuth not configured")

    async with httpx.AsyncClient() as client:
        token_response = await client.post(
            GOOGLE_TOKEN_URL,
            data={
                "client_id": GOOGLE_CLIENT_ID,
                "client_secret": GOOGLE_CLIENT_SECRET,
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": GOOGLE_CALLBACK_URL,
            },
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )

        if token_response.status_code != 200:
            logger.warning("Google token exchange failed: %s", token_response.text)
            return RedirectResponse(url=f"{FRONTEND_URL}/login?error=token_exchange")

        token_data = token_response.json()

        profile_response = await client.get(
            GOOGLE_USERINFO_URL,
            headers={"Authorization": f"Bearer {token_data['access_token']}"},
        )

        if profile_response.status_code != 200:
            return RedirectResponse(url=f"{FRONTEND_URL}/login?error=user_fetch")

        profile = profile_response.json()

    try:
        user = await upsert_google_user(
            google_id=profile["sub"],
            email=profile.get("email"),
            name=profile.get("name"),
            avatar=profile.get("picture"),
            refresh_token=token_data.get("refresh_token"),
        )
    except ValueError:
        return RedirectResponse(url=f"{FRONTEND_URL}/login?error=no_email")

    token = create_jwt(user["user_id"], user.get("name"), bool(user.get("is_admin")))

    response = RedirectResponse(url=f"{FRONTEND_URL}{state_data['next']}")
    set_session_cookie(response, token)
    return response


@router.post("/logout")
async def logout(response: Response):
    """Clear the session cookie."""
    response.delete_cookie(key=SESSION_COOKIE)
    return {"ok": True}


@router.get("/me")
async def get_me(request: Request):
    """Get the current user's profile (never includes the refresh token)."""
    payload = await get_current_user(request)
    actor = actor_from_payload(payload)

    user = await get_user(actor["user_id"])
    if not user:
        raise HTTPException(404, "User not found in database")

    return public_user(user)
