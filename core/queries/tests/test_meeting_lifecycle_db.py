"""End-to-end meeting lifecycle against the real database.

The lifecycle service is pointed at the rollback connection, so every
store change it makes is discarded after the test. Calendar sync is
skipped because the test users have no refresh token.
"""

import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import insert
from unittest.mock import patch

from core.meetings import (
    ALREADY_JOINED_NOTE,
    JoinOutcome,
    MeetingFilters,
    create_meeting,
    get_meeting_detail,
    join_meeting,
    leave_meeting,
    list_meetings,
)
from core.tables import users


async def create_test_user(conn, name: str) -> dict:
    result = await conn.execute(
        insert(users)
        .values(email=f"{uuid.uuid4().hex}@example.com", name=name)
        .returning(users)
    )
    return dict(result.mappings().first())


@pytest.fixture
def lifecycle_db(db_conn):
    """Route core.meetings connections and transactions to the test connection."""

    @asynccontextmanager
    async def use_test_conn():
        yield db_conn

    with (
        patch("core.meetings.get_connection", use_test_conn),
        patch("core.meetings.get_transaction", use_test_conn),
    ):
        yield db_conn


class TestMeetingLifecycle:
    @pytest.mark.asyncio
    async def test_create_join_end_and_rejoin(self, lifecycle_db):
        alice = await create_test_user(lifecycle_db, "Alice")
        bob = await create_test_user(lifecycle_db, "Bob")
        actor_a = {"user_id": alice["user_id"], "is_admin": False}
        actor_b = {"user_id": bob["user_id"], "is_admin": False}

        t = datetime.now(timezone.utc)
        title = f"Thermodynamics {uuid.uuid4().hex}"
        meeting = await create_meeting(
            {
                "title": title,
                "start_time": t + timedelta(hours=1),
                "end_time": t + timedelta(hours=2),
            },
            actor_a,
        )
        meeting_id = meeting["meeting_id"]
        assert [a["user_id"] for a in meeting["attendees"]] == [alice["user_id"]]

        joined = await join_meeting(meeting_id, actor_b, now=t)
        assert joined.outcome == JoinOutcome.created

        detail = await get_meeting_detail(meeting_id)
        attendee_ids = [a["user_id"] for a in detail["attendees"]]
        assert sorted(attendee_ids) == sorted([alice["user_id"], bob["user_id"]])

        filters = MeetingFilters(q=title)
        listed = await list_meetings(filters, now=t)
        assert [m["meeting_id"] for m in listed] == [meeting_id]

        after_end = t + timedelta(hours=3)
        assert await list_meetings(filters, now=after_end) == []

        detail = await get_meeting_detail(meeting_id)
        assert detail["meeting_id"] == meeting_id

        rejoined = await join_meeting(meeting_id, actor_b, now=after_end)
        assert rejoined.outcome == JoinOutcome.already_exists
        assert rejoined.note == ALREADY_JOINED_NOTE

        detail = await get_meeting_detail(meeting_id)
        bob_rows = [a for a in detail["attendees"] if a["user_id"] == bob["user_id"]]
        assert len(bob_rows) == 1

    @pytest.mark.asyncio
    async def test_double_join_before_start(self, lifecycle_db):
        alice = await create_test_user(lifecycle_db, "Alice")
        bob = await create_test_user(lifecycle_db, "Bob")
        t = datetime.now(timezone.utc)
        meeting = await create_meeting(
            {
                "title": "Linear algebra",
                "start_time": t + timedelta(hours=1),
                "end_time": t + timedelta(hours=2),
            },
            {"user_id": alice["user_id"], "is_admin": False},
        )
        actor_b = {"user_id": bob["user_id"], "is_admin": False}

        first = await join_meeting(meeting["meeting_id"], actor_b, now=t)
        second = await join_meeting(meeting["meeting_id"], actor_b, now=t)

        assert first.outcome == JoinOutcome.created
        assert second.outcome == JoinOutcome.already_exists

        assert await leave_meeting(meeting["meeting_id"], actor_b) == 1
        assert await leave_meeting(meeting["meeting_id"], actor_b) == 0
