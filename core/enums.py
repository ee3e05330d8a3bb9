"""SQLAlchemy enum definitions for the database schema."""

import enum

from sqlalchemy import Enum as SQLEnum


# =====================================================
# Python Enum Classes
# =====================================================


class UserRole(str, enum.Enum):
    admin = "admin"
    member = "member"


class AttendeeStatus(str, enum.Enum):
    going = "going"
    interested = "interested"


# =====================================================
# SQLAlchemy Enum Types
# These reference existing PostgreSQL types (create_type=False)
# =====================================================

attendee_status_enum = SQLEnum(
    AttendeeStatus,
    name="attendee_status",
    create_type=False,
    native_enum=True,
    values_callable=lambda e: [member.value for member in e],
)
