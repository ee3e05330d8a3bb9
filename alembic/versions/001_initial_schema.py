"""Initial schema: users, meetings, meeting_attendees.

Revision ID: 001
Revises:
Create Date: 2026-10-18

Creates the attendee_status enum type and the three tables behind
meeting scheduling and attendance.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

attendee_status = postgresql.ENUM(
    "going", "interested", name="attendee_status", create_type=False
)


def upgrade() -> None:
    attendee_status.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "users",
        sa.Column("user_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("google_id", sa.Text(), nullable=True),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=True),
        sa.Column("avatar", sa.Text(), nullable=True),
        sa.Column("refresh_token", sa.Text(), nullable=True),
        sa.Column(
            "is_admin", sa.Boolean(), server_default=sa.text("false"), nullable=False
        ),
        sa.Column("last_seen_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=True,
        ),
        sa.Column(
            "updated_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=True,
        ),
        sa.PrimaryKeyConstraint("user_id", name=op.f("pk_users")),
        sa.UniqueConstraint("google_id", name=op.f("uq_users_google_id")),
        sa.UniqueConstraint("email", name=op.f("uq_users_email")),
    )
    op.create_index("idx_users_last_seen_at", "users", ["last_seen_at"], unique=False)

    op.create_table(
        "meetings",
        sa.Column("meeting_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("subject", sa.Text(), nullable=True),
        sa.Column("level", sa.Text(), nullable=True),
        sa.Column("specialization", sa.Text(), nullable=True),
        sa.Column("start_time", postgresql.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("end_time", postgresql.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("location", sa.Text(), nullable=True),
        sa.Column("online_url", sa.Text(), nullable=True),
        sa.Column("created_by_id", sa.Integer(), nullable=False),
        sa.Column("google_event_id", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=True,
        ),
        sa.Column(
            "updated_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=True,
        ),
        sa.ForeignKeyConstraint(
            ["created_by_id"],
            ["users.user_id"],
            name=op.f("fk_meetings_created_by_id_users"),
            ondelete="RESTRICT",
        ),
        sa.PrimaryKeyConstraint("meeting_id", name=op.f("pk_meetings")),
    )
    op.create_index(
        "idx_meetings_subject_level_specialization_start",
        "meetings",
        ["subject", "level", "specialization", "start_time"],
        unique=False,
    )
    op.create_index("idx_meetings_end_time", "meetings", ["end_time"], unique=False)
    op.create_index(
        "idx_meetings_created_by_id", "meetings", ["created_by_id"], unique=False
    )

    op.create_table(
        "meeting_attendees",
        sa.Column("attendee_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("meeting_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column(
            "status",
            attendee_status,
            server_default=sa.text("'going'"),
            nullable=False,
        ),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=True,
        ),
        sa.ForeignKeyConstraint(
            ["meeting_id"],
            ["meetings.meeting_id"],
            name=op.f("fk_meeting_attendees_meeting_id_meetings"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.user_id"],
            name=op.f("fk_meeting_attendees_user_id_users"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("attendee_id", name=op.f("pk_meeting_attendees")),
        sa.UniqueConstraint(
            "meeting_id", "user_id", name="meeting_attendees_meeting_user_unique"
        ),
    )
    op.create_index(
        "idx_meeting_attendees_meeting_id",
        "meeting_attendees",
        ["meeting_id"],
        unique=False,
    )
    op.create_index(
        "idx_meeting_attendees_user_id", "meeting_attendees", ["user_id"], unique=False
    )


def downgrade() -> None:
    op.drop_index("idx_meeting_attendees_user_id", table_name="meeting_attendees")
    op.drop_index("idx_meeting_attendees_meeting_id", table_name="meeting_attendees")
    op.drop_table("meeting_attendees")
    op.drop_index("idx_meetings_created_by_id", table_name="meetings")
    op.drop_index("idx_meetings_end_time", table_name="meetings")
    op.drop_index(
        "idx_meetings_subject_level_specialization_start", table_name="meetings"
    )
    op.drop_table("meetings")
    op.drop_index("idx_users_last_seen_at", table_name="users")
    op.drop_table("users")
    attendee_status.drop(op.get_bind(), checkfirst=True)
