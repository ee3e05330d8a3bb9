"""
Centralized configuration for the study group scheduler.

Every setting is read from the environment (populated from .env / .env.local
by main.py) at call time, so tests can patch os.environ freely.
"""

import os

DEFAULT_DELETE_WINDOW_MINUTES = 60


def is_dev_mode() -> bool:
    """Check if running in development mode (DEV_MODE env)."""
    return os.getenv("DEV_MODE", "").lower() in ("true", "1", "yes")


def is_production() -> bool:
    return os.getenv("ENVIRONMENT", "").lower() == "production"


def get_api_port() -> int:
    """Get API server port from env or default."""
    return int(os.getenv("API_PORT", "8000"))


def get_frontend_url() -> str:
    return os.environ.get("FRONTEND_URL", "http://localhost:5173").rstrip("/")


def get_allowed_origins() -> list[str]:
    """Get list of allowed CORS origins."""
    origins = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        f"http://localhost:{get_api_port()}",
    ]
    frontend_url = get_frontend_url()
    if frontend_url not in origins:
        origins.append(frontend_url)
    return origins


def get_calendar_delete_window_minutes() -> int:
    """
    Padding (minutes) around a meeting when searching the creator's calendar
    for events to delete by title.
    """
    raw = os.getenv("CALENDAR_DELETE_WINDOW_MINUTES")
    if not raw:
        return DEFAULT_DELETE_WINDOW_MINUTES
    try:
        return max(0, int(raw))
    except ValueError:
        return DEFAULT_DELETE_WINDOW_MINUTES


def calendar_conference_links_enabled() -> bool:
    """Whether new calendar events should request a Google Meet link."""
    return os.getenv("CALENDAR_CONFERENCE_LINKS", "").lower() in ("true", "1", "yes")


def get_calendar_send_updates() -> str:
    """Google Calendar sendUpdates mode for patch/delete: all, externalOnly or none."""
    value = os.getenv("CALENDAR_SEND_UPDATES", "all")
    return value if value in ("all", "externalOnly", "none") else "all"


# Required environment variables
# Format: (name, description, required_in_dev)
REQUIRED_ENV_VARS = [
    ("DATABASE_URL", "PostgreSQL connection string", True),
    ("JWT_SECRET", "Secret key for JWT session tokens", True),
    ("GOOGLE_CLIENT_ID", "Google OAuth client ID", False),
    ("GOOGLE_CLIENT_SECRET", "Google OAuth client secret", False),
]


def check_required_env_vars() -> tuple[bool, list[str]]:
    """
    Check that required environment variables are set.

    Returns:
        (all_ok, warnings): Tuple of success flag and list of warning messages
    """
    warnings = []
    errors = []
    in_dev = is_dev_mode()

    for name, description, required_in_dev in REQUIRED_ENV_VARS:
        if os.environ.get(name):
            continue
        if is_production():
            errors.append(f"  ✗ {name}: Not set ({description})")
        elif required_in_dev or not in_dev:
            warnings.append(f"  ⚠ {name}: Not set ({description})")

    if errors:
        for error in errors:
            print(error)
        return False, warnings

    return True, warnings
