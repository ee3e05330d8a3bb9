# web_api/tests/test_meetings_api.py
"""Tests for the /api/meetings endpoints.

Tests cover:
- Create validation (required fields, end after start) and 201 on success
- Listing filters reach the core as MeetingFilters
- Error mapping: not found 404, forbidden 403, ended 400
- Patch forwards only the fields present in the body
- Join outcomes (created, already joined, rejected) and leave
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

from core.meetings import (
    ALREADY_JOINED_NOTE,
    JOIN_FAILED_NOTE,
    JoinOutcome,
    JoinResult,
    MeetingEndedError,
    MeetingForbiddenError,
    MeetingNotFoundError,
)

VALID_BODY = {
    "title": "Organic chemistry prep",
    "subject": "Chemistry",
    "start_time": "2026-11-02T15:00:00Z",
    "end_time": "2026-11-02T17:00:00Z",
}


class TestCreateMeeting:
    """POST /api/meetings"""

    def test_creates_meeting(self, client, actor):
        with patch(
            "web_api.routes.meetings.create_meeting", new_callable=AsyncMock
        ) as mock_create:
            mock_create.return_value = {"meeting_id": 10, "title": "Organic chemistry prep"}

            response = client.post("/api/meetings", json=VALID_BODY)

        assert response.status_code == 201
        assert response.json()["meeting_id"] == 10
        payload, passed_actor = mock_create.call_args.args
        assert passed_actor == actor
        assert payload["start_time"] == datetime(2026, 11, 2, 15, 0, tzinfo=timezone.utc)
        assert payload["description"] is None

    def test_end_before_start_rejected(self, client):
        body = {**VALID_BODY, "end_time": "2026-11-02T14:00:00Z"}
        with patch(
            "web_api.routes.meetings.create_meeting", new_callable=AsyncMock
        ) as mock_create:
            response = client.post("/api/meetings", json=body)

        assert response.status_code == 422
        mock_create.assert_not_called()

    def test_missing_title_rejected(self, client):
        body = {k: v for k, v in VALID_BODY.items() if k != "title"}
        response = client.post("/api/meetings", json=body)
        assert response.status_code == 422

    def test_requires_session(self, anonymous_client):
        response = anonymous_client.post("/api/meetings", json=VALID_BODY)
        assert response.status_code == 401


class TestListMeetings:
    """GET /api/meetings"""

    def test_filters_forwarded(self, client):
        with patch(
            "web_api.routes.meetings.list_meetings", new_callable=AsyncMock
        ) as mock_list:
            mock_list.return_value = []

            response = client.get(
                "/api/meetings",
                params={"subject": "Math", "q": "exam", "from": "2026-11-01T00:00:00Z"},
            )

        assert response.status_code == 200
        assert response.json() == []
        filters = mock_list.call_args.args[0]
        assert filters.subject == "Math"
        assert filters.q == "exam"
        assert filters.level is None
        assert filters.start_from == datetime(2026, 11, 1, tzinfo=timezone.utc)

    def test_naive_dates_read_as_utc(self, client):
        with patch(
            "web_api.routes.meetings.list_meetings", new_callable=AsyncMock
        ) as mock_list:
            mock_list.return_value = []

            client.get("/api/meetings", params={"to": "2026-11-08T00:00:00"})

        assert mock_list.call_args.args[0].start_to.tzinfo == timezone.utc


class TestGetMeeting:
    """GET /api/meetings/{meeting_id}"""

    def test_not_found(self, client):
        with patch(
            "web_api.routes.meetings.get_meeting_detail", new_callable=AsyncMock
        ) as mock_get:
            mock_get.side_effect = MeetingNotFoundError("Meeting 99 not found")

            response = client.get("/api/meetings/99")

        assert response.status_code == 404


class TestPatchMeeting:
    """PATCH /api/meetings/{meeting_id}"""

    def test_only_present_fields_forwarded(self, client, actor):
        with patch(
            "web_api.routes.meetings.patch_meeting", new_callable=AsyncMock
        ) as mock_patch:
            mock_patch.return_value = {"meeting_id": 10, "location": None}

            response = client.patch("/api/meetings/10", json={"location": None})

        assert response.status_code == 200
        mock_patch.assert_called_once_with(10, {"location": None}, actor)

    def test_title_cannot_be_null(self, client):
        with patch(
            "web_api.routes.meetings.patch_meeting", new_callable=AsyncMock
        ) as mock_patch:
            response = client.patch("/api/meetings/10", json={"title": None})

        assert response.status_code == 422
        mock_patch.assert_not_called()

    def test_forbidden(self, client):
        with patch(
            "web_api.routes.meetings.patch_meeting", new_callable=AsyncMock
        ) as mock_patch:
            mock_patch.side_effect = MeetingForbiddenError("Only the creator or an admin can edit")

            response = client.patch("/api/meetings/10", json={"title": "Mine now"})

        assert response.status_code == 403


class TestDeleteMeeting:
    """DELETE /api/meetings/{meeting_id}"""

    def test_deletes(self, client, actor):
        with patch(
            "web_api.routes.meetings.delete_meeting", new_callable=AsyncMock
        ) as mock_delete:
            response = client.delete("/api/meetings/10")

        assert response.status_code == 200
        assert response.json() == {"ok": True}
        mock_delete.assert_called_once_with(10, actor)

    def test_not_found(self, client):
        with patch(
            "web_api.routes.meetings.delete_meeting", new_callable=AsyncMock
        ) as mock_delete:
            mock_delete.side_effect = MeetingNotFoundError("Meeting 10 not found")

            response = client.delete("/api/meetings/10")

        assert response.status_code == 404


class TestJoinLeave:
    """POST /api/meetings/{meeting_id}/join and /leave"""

    def test_join_returns_attendee(self, client):
        attendee = {"attendee_id": 3, "meeting_id": 10, "user_id": 1, "status": "going"}
        with patch(
            "web_api.routes.meetings.join_meeting", new_callable=AsyncMock
        ) as mock_join:
            mock_join.return_value = JoinResult(JoinOutcome.created, attendee=attendee)

            response = client.post("/api/meetings/10/join")

        assert response.status_code == 200
        assert response.json() == attendee

    def test_join_twice_is_ok_with_note(self, client):
        with patch(
            "web_api.routes.meetings.join_meeting", new_callable=AsyncMock
        ) as mock_join:
            mock_join.return_value = JoinResult(
                JoinOutcome.already_exists, note=ALREADY_JOINED_NOTE
            )

            response = client.post("/api/meetings/10/join")

        assert response.status_code == 200
        assert response.json() == {"ok": True, "note": "Already joined"}

    def test_join_rejected(self, client):
        with patch(
            "web_api.routes.meetings.join_meeting", new_callable=AsyncMock
        ) as mock_join:
            mock_join.return_value = JoinResult(JoinOutcome.rejected, note=JOIN_FAILED_NOTE)

            response = client.post("/api/meetings/10/join")

        assert response.status_code == 400

    def test_join_ended_meeting(self, client):
        with patch(
            "web_api.routes.meetings.join_meeting", new_callable=AsyncMock
        ) as mock_join:
            mock_join.side_effect = MeetingEndedError("Meeting already ended")

            response = client.post("/api/meetings/10/join")

        assert response.status_code == 400
        assert response.json()["detail"] == "Meeting already ended"

    def test_leave_is_idempotent(self, client):
        with patch(
            "web_api.routes.meetings.leave_meeting", new_callable=AsyncMock
        ) as mock_leave:
            mock_leave.return_value = 0

            response = client.post("/api/meetings/10/leave")

        assert response.status_code == 200
        assert response.json() == {"ok": True}
