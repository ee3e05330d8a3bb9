"""Google Calendar API client initialization."""

import logging
import os

import sentry_sdk
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build, Resource
from googleapiclient.errors import HttpError

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/calendar.events"]
TOKEN_URI = "https://oauth2.googleapis.com/token"
CALENDAR_ID = "primary"

# Provider statuses meaning "the event is already gone"
GONE_STATUSES = (404, 410)


def _http_status(exception: Exception) -> int | None:
    if isinstance(exception, HttpError):
        return exception.resp.status
    return None


def is_gone_error(exception: Exception) -> bool:
    """Check if exception means the event no longer exists (404 / 410)."""
    return _http_status(exception) in GONE_STATUSES


def _is_rate_limit_error(exception: Exception) -> bool:
    """Check if exception is a Google API rate limit error."""
    return _http_status(exception) == 429


def log_calendar_error(
    exception: Exception,
    operation: str,
    context: dict | None = None,
) -> None:
    """
    Log calendar API errors with appropriate severity.

    Rate limits get warning level + specific Sentry event.
    Other errors get error level.
    """
    context = context or {}

    if _is_rate_limit_error(exception):
        logger.warning(
            f"Google Calendar rate limit hit during {operation}",
            extra={"operation": operation, **context},
        )
        sentry_sdk.capture_message(
            f"Google Calendar rate limit: {operation}",
            level="warning",
            extras={"operation": operation, **context},
        )
    else:
        logger.error(
            f"Google Calendar API error during {operation}: {exception}",
            extra={"operation": operation, **context},
        )
        sentry_sdk.capture_exception(exception)


def is_calendar_configured() -> bool:
    """Check if the Google OAuth client credentials are configured."""
    return bool(
        os.environ.get("GOOGLE_CLIENT_ID") and os.environ.get("GOOGLE_CLIENT_SECRET")
    )


def get_calendar_service(refresh_token: str | None) -> Resource | None:
    """
    Build a Calendar API service acting on behalf of one user.

    A new service is built per call from that user's refresh token; nothing
    is cached between users.

    Returns None if the user has no refresh token or OAuth is not configured.
    """
    if not refresh_token or not is_calendar_configured():
        return None

    creds = Credentials(
        token=None,
        refresh_token=refresh_token,
        token_uri=TOKEN_URI,
        client_id=os.environ.get("GOOGLE_CLIENT_ID"),
        client_secret=os.environ.get("GOOGLE_CLIENT_SECRET"),
        scopes=SCOPES,
    )
    return build("calendar", "v3", credentials=creds, cache_discovery=False)
