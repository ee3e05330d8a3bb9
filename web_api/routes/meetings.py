"""
Meeting routes.

Endpoints:
- GET /api/meetings - List upcoming meetings (filters: q, subject, level, specialization, from, to)
- POST /api/meetings - Create a meeting (creator auto-joins)
- GET /api/meetings/{meeting_id} - Meeting detail
- PATCH /api/meetings/{meeting_id} - Partial update (creator or admin)
- DELETE /api/meetings/{meeting_id} - Delete (creator or admin)
- POST /api/meetings/{meeting_id}/join - Join
- POST /api/meetings/{meeting_id}/leave - Leave
"""

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import AwareDatetime, BaseModel, Field, model_validator

from core.meetings import (
    InvalidMeetingTimesError,
    JoinOutcome,
    MeetingEndedError,
    MeetingError,
    MeetingFilters,
    MeetingForbiddenError,
    MeetingNotFoundError,
    UnknownUserError,
    create_meeting,
    delete_meeting,
    get_meeting_detail,
    join_meeting,
    leave_meeting,
    list_meetings,
    patch_meeting,
)
from web_api.auth import get_current_actor

router = APIRouter(prefix="/api/meetings", tags=["meetings"])

# Exception type -> HTTP status
_ERROR_STATUS = {
    MeetingNotFoundError: 404,
    MeetingForbiddenError: 403,
    MeetingEndedError: 400,
    InvalidMeetingTimesError: 400,
    UnknownUserError: 401,
}


def _to_http(error: MeetingError) -> HTTPException:
    status = _ERROR_STATUS.get(type(error), 400)
    return HTTPException(status, str(error))


def _as_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class MeetingCreate(BaseModel):
    """Schema for creating a meeting."""

    title: str = Field(min_length=1)
    description: str | None = None
    subject: str | None = None
    level: str | None = None
    specialization: str | None = None
    start_time: AwareDatetime
    end_time: AwareDatetime
    location: str | None = None
    online_url: str | None = None

    @model_validator(mode="after")
    def _end_after_start(self):
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class MeetingPatch(BaseModel):
    """
    Schema for a partial meeting update.

    Only fields present in the request body are applied. title, start_time
    and end_time may be omitted but not set to null.
    """

    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    subject: str | None = None
    level: str | None = None
    specialization: str | None = None
    start_time: AwareDatetime | None = None
    end_time: AwareDatetime | None = None
    location: str | None = None
    online_url: str | None = None

    @model_validator(mode="after")
    def _check_required_and_order(self):
        for name in ("title", "start_time", "end_time"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        if self.start_time and self.end_time and self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


@router.get("")
async def list_meetings_endpoint(
    q: str | None = None,
    subject: str | None = None,
    level: str | None = None,
    specialization: str | None = None,
    start_from: datetime | None = Query(default=None, alias="from"),
    start_to: datetime | None = Query(default=None, alias="to"),
) -> list[dict[str, Any]]:
    """
    List meetings that have not ended yet, soonest first.

    Ended meetings are never listed, even when every filter matches.
    """
    filters = MeetingFilters(
        q=q or None,
        subject=subject or None,
        level=level or None,
        specialization=specialization or None,
        start_from=_as_utc(start_from),
        start_to=_as_utc(start_to),
    )
    return await list_meetings(filters)


@router.post("", status_code=201)
async def create_meeting_endpoint(
    request: MeetingCreate,
    actor: dict = Depends(get_current_actor),
) -> dict[str, Any]:
    """Create a meeting. The creator is enrolled as "going"."""
    try:
        return await create_meeting(request.model_dump(), actor)
    except MeetingError as e:
        raise _to_http(e)


@router.get("/{meeting_id}")
async def get_meeting_endpoint(meeting_id: int) -> dict[str, Any]:
    try:
        return await get_meeting_detail(meeting_id)
    except MeetingError as e:
        raise _to_http(e)


@router.patch("/{meeting_id}")
async def patch_meeting_endpoint(
    meeting_id: int,
    request: MeetingPatch,
    actor: dict = Depends(get_current_actor),
) -> dict[str, Any]:
    """Apply only the fields present in the body (creator or admin)."""
    try:
        return await patch_meeting(
            meeting_id, request.model_dump(exclude_unset=True), actor
        )
    except MeetingError as e:
        raise _to_http(e)


@router.delete("/{meeting_id}")
async def delete_meeting_endpoint(
    meeting_id: int,
    actor: dict = Depends(get_current_actor),
) -> dict[str, Any]:
    try:
        await delete_meeting(meeting_id, actor)
    except MeetingError as e:
        raise _to_http(e)
    return {"ok": True}


@router.post("/{meeting_id}/join")
async def join_meeting_endpoint(
    meeting_id: int,
    actor: dict = Depends(get_current_actor),
) -> dict[str, Any]:
    """
    Join a meeting.

    Returns the attendee record, or {"ok": true, "note": "Already joined"}
    if the user was already attending.
    """
    try:
        result = await join_meeting(meeting_id, actor)
    except MeetingError as e:
        raise _to_http(e)

    if result.outcome == JoinOutcome.rejected:
        raise HTTPException(400, result.note)
    if result.outcome == JoinOutcome.already_exists:
        return {"ok": True, "note": result.note}
    return result.attendee


@router.post("/{meeting_id}/leave")
async def leave_meeting_endpoint(
    meeting_id: int,
    actor: dict = Depends(get_current_actor),
) -> dict[str, Any]:
    """Leave a meeting. Succeeds even if the user was not attending."""
    try:
        await leave_meeting(meeting_id, actor)
    except MeetingError as e:
        raise _to_http(e)
    return {"ok": True}
