"""Tests for attendance and meeting queries."""

from datetime import datetime, timezone

import pytest
from unittest.mock import AsyncMock, MagicMock

from sqlalchemy.dialects import postgresql

NOW = datetime(2026, 11, 1, 12, 0, tzinfo=timezone.utc)


def compiled_sql(mock_conn) -> str:
    stmt = mock_conn.execute.call_args.args[0]
    return str(stmt.compile(dialect=postgresql.dialect()))


class TestAddAttendee:
    @pytest.mark.asyncio
    async def test_duplicate_returns_none(self):
        """ON CONFLICT DO NOTHING returns no row for an existing attendee."""
        from core.queries.attendees import add_attendee

        mock_conn = AsyncMock()
        mock_result = MagicMock()
        mock_result.mappings.return_value.first.return_value = None
        mock_conn.execute.return_value = mock_result

        assert await add_attendee(mock_conn, 10, 2) is None
        sql = compiled_sql(mock_conn)
        assert "ON CONFLICT ON CONSTRAINT meeting_attendees_meeting_user_unique" in sql
        assert "DO NOTHING" in sql

    @pytest.mark.asyncio
    async def test_new_attendee_returns_row(self):
        from core.queries.attendees import add_attendee

        mock_conn = AsyncMock()
        mock_result = MagicMock()
        mock_result.mappings.return_value.first.return_value = {
            "attendee_id": 1,
            "meeting_id": 10,
            "user_id": 2,
            "status": "going",
        }
        mock_conn.execute.return_value = mock_result

        row = await add_attendee(mock_conn, 10, 2)

        assert row["attendee_id"] == 1


class TestGetUpcomingWithCounts:
    @pytest.mark.asyncio
    async def test_excludes_joined_meetings_before_limit(self):
        from core.queries.attendees import get_upcoming_with_counts

        mock_conn = AsyncMock()
        mock_result = MagicMock()
        mock_result.mappings.return_value = []
        mock_conn.execute.return_value = mock_result

        await get_upcoming_with_counts(mock_conn, now=NOW, limit=20, exclude_user_id=7)

        sql = compiled_sql(mock_conn)
        assert "NOT IN" in sql
        assert "count(meeting_attendees.attendee_id) AS attendee_count" in sql
        assert "LIMIT" in sql


class TestListUpcomingMeetings:
    @pytest.mark.asyncio
    async def test_always_restricts_to_unfinished(self):
        from core.queries.meetings import list_upcoming_meetings

        mock_conn = AsyncMock()
        mock_result = MagicMock()
        mock_result.mappings.return_value = []
        mock_conn.execute.return_value = mock_result

        await list_upcoming_meetings(mock_conn, now=NOW, q="calc", subject="math")

        sql = compiled_sql(mock_conn)
        assert "meetings.end_time >" in sql
        assert "LIKE" in sql.upper()
        assert "ORDER BY meetings.start_time, meetings.meeting_id" in sql
