"""
Core business logic - transport-agnostic.
Used by the web API.
"""

# Database (SQLAlchemy)
from .database import get_connection, get_transaction, get_engine, close_engine, is_configured

# Meeting lifecycle
from .meetings import (
    MeetingError, MeetingNotFoundError, MeetingForbiddenError, MeetingEndedError,
    InvalidMeetingTimesError, UnknownUserError,
    JoinOutcome, JoinResult, MeetingFilters,
    list_meetings, get_meeting_detail, create_meeting, patch_meeting,
    delete_meeting, join_meeting, leave_meeting, can_modify,
)

# Users (async functions - must be awaited)
from .users import get_user, upsert_google_user, touch_last_seen, public_user

# Recommendations
from .recommendations import UserProfile, build_profile, get_eligible_meetings, recommend

# Stats
from .stats import get_platform_stats

__all__ = [
    # Database (SQLAlchemy)
    'get_connection', 'get_transaction', 'get_engine', 'close_engine', 'is_configured',
    # Meetings
    'MeetingError', 'MeetingNotFoundError', 'MeetingForbiddenError', 'MeetingEndedError',
    'InvalidMeetingTimesError', 'UnknownUserError',
    'JoinOutcome', 'JoinResult', 'MeetingFilters',
    'list_meetings', 'get_meeting_detail', 'create_meeting', 'patch_meeting',
    'delete_meeting', 'join_meeting', 'leave_meeting', 'can_modify',
    # Users
    'get_user', 'upsert_google_user', 'touch_last_seen', 'public_user',
    # Recommendations
    'UserProfile', 'build_profile', 'get_eligible_meetings', 'recommend',
    # Stats
    'get_platform_stats',
]
