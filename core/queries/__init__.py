"""Query layer for database operations using SQLAlchemy Core."""

from .attendees import (
    add_attendee,
    get_attendee,
    get_attended_meetings,
    get_attendees_for_meetings,
    get_upcoming_with_counts,
    remove_attendee,
)
from .meetings import (
    create_meeting,
    delete_meeting,
    get_creators,
    get_meeting,
    get_meeting_for_sync,
    list_upcoming_meetings,
    set_google_event_id,
    update_meeting,
)
from .users import create_user, find_google_user, get_user, touch_last_seen, update_user

__all__ = [
    # Meetings
    "list_upcoming_meetings",
    "get_meeting",
    "get_meeting_for_sync",
    "create_meeting",
    "update_meeting",
    "set_google_event_id",
    "delete_meeting",
    "get_creators",
    # Attendees
    "add_attendee",
    "get_attendee",
    "remove_attendee",
    "get_attendees_for_meetings",
    "get_attended_meetings",
    "get_upcoming_with_counts",
    # Users
    "get_user",
    "find_google_user",
    "create_user",
    "update_user",
    "touch_last_seen",
]
