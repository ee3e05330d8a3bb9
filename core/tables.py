"""SQLAlchemy Core table definitions for the database schema."""

from sqlalchemy import (
    Boolean,
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import TIMESTAMP

from .enums import attendee_status_enum

# Naming convention for constraints (helps Alembic generate better names)
convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}
metadata = MetaData(naming_convention=convention)


# =====================================================
# 1. USERS
# =====================================================
users = Table(
    "users",
    metadata,
    Column("user_id", Integer, primary_key=True, autoincrement=True),
    Column("google_id", Text, unique=True),
    Column("email", Text, nullable=False, unique=True),
    Column("name", Text),
    Column("avatar", Text),
    # Google OAuth refresh token; present = calendar sync enabled
    Column("refresh_token", Text),
    Column("is_admin", Boolean, server_default="false", nullable=False),
    Column("last_seen_at", TIMESTAMP(timezone=True)),
    Column("created_at", TIMESTAMP(timezone=True), server_default=func.now()),
    Column("updated_at", TIMESTAMP(timezone=True), server_default=func.now()),
    Index("idx_users_last_seen_at", "last_seen_at"),
)


# =====================================================
# 2. MEETINGS
# =====================================================
meetings = Table(
    "meetings",
    metadata,
    Column("meeting_id", Integer, primary_key=True, autoincrement=True),
    Column("title", Text, nullable=False),
    Column("description", Text),
    Column("subject", Text),
    Column("level", Text),
    Column("specialization", Text),
    Column("start_time", TIMESTAMP(timezone=True), nullable=False),
    Column("end_time", TIMESTAMP(timezone=True), nullable=False),
    Column("location", Text),
    Column("online_url", Text),
    Column(
        "created_by_id",
        Integer,
        ForeignKey("users.user_id", ondelete="RESTRICT"),
        nullable=False,
    ),
    Column("google_event_id", Text),  # set after a successful calendar sync
    Column("created_at", TIMESTAMP(timezone=True), server_default=func.now()),
    Column("updated_at", TIMESTAMP(timezone=True), server_default=func.now()),
    Index(
        "idx_meetings_subject_level_specialization_start",
        "subject",
        "level",
        "specialization",
        "start_time",
    ),
    Index("idx_meetings_end_time", "end_time"),
    Index("idx_meetings_created_by_id", "created_by_id"),
)


# =====================================================
# 3. MEETING_ATTENDEES
# =====================================================
meeting_attendees = Table(
    "meeting_attendees",
    metadata,
    Column("attendee_id", Integer, primary_key=True, autoincrement=True),
    Column(
        "meeting_id",
        Integer,
        ForeignKey("meetings.meeting_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "user_id",
        Integer,
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("status", attendee_status_enum, server_default="going", nullable=False),
    Column("created_at", TIMESTAMP(timezone=True), server_default=func.now()),
    Index("idx_meeting_attendees_meeting_id", "meeting_id"),
    Index("idx_meeting_attendees_user_id", "user_id"),
    UniqueConstraint(
        "meeting_id", "user_id", name="meeting_attendees_meeting_user_unique"
    ),
)
