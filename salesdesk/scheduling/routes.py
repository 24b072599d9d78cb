"""
Scheduling Routes - Time Parsing, Availability and Booking

Provides endpoints for the sales assistant's conversational layer:
- POST /scheduling/parse
- POST /scheduling/availability
- POST /scheduling/meetings
- POST /scheduling/alternatives
- GET  /scheduling/phrases/{category}
- POST /scheduling/resolve

Responses never describe the organizer's calendar beyond free/busy windows.
"""

from datetime import datetime
from typing import Any, Literal

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from salesdesk.logging_config import bind_scheduling_context, clear_scheduling_context, get_logger
from salesdesk.scheduling.errors import ConfigurationError, InvalidMeetingRequest
from salesdesk.scheduling.formatting import format_date, format_time_slot
from salesdesk.scheduling.models import Attendee, MeetingKind, MeetingRequest
from salesdesk.scheduling.pipeline import PipelineState
from salesdesk.scheduling.service import SchedulingService, get_default_service

logger = get_logger(__name__)

router = APIRouter()


def get_service() -> SchedulingService:
    return get_default_service()


async def request_context():
    bind_scheduling_context()
    try:
        yield
    finally:
        clear_scheduling_context()


def _unavailable(e: ConfigurationError) -> HTTPException:
    logger.error("scheduling_not_configured", error=str(e))
    return HTTPException(status_code=503, detail=str(e))


# =============================================================================
# Request Models
# =============================================================================


class ParseRequest(BaseModel):
    """Request to resolve a free-text time phrase."""

    text: str = Field(..., description="What the visitor said, e.g. 'next Tuesday at 2pm'")
    now: datetime | None = Field(None, description="Reference time (defaults to now)")


class AvailabilityRequest(BaseModel):
    """Request to check a single window."""

    start: datetime = Field(..., description="Start time (ISO format)")
    duration_minutes: int = Field(30, gt=0, description="Duration in minutes")


class MeetingCreateRequest(BaseModel):
    """Request to book a meeting with one attendee."""

    start_time: datetime = Field(..., description="Start time (ISO format)")
    attendee_name: str = Field(..., description="Attendee display name")
    attendee_email: str = Field(..., description="Attendee email address")
    kind: Literal["video", "in_person"] = Field("video", description="Meeting kind")
    location: str | None = Field(None, description="Required for in-person meetings")
    duration_minutes: int | None = Field(None, description="Duration in minutes")
    subject: str | None = Field(None, description="Subject override")
    description: str = Field("", description="HTML body override")


class AlternativesRequest(BaseModel):
    """Request for replacement times near a busy slot."""

    requested_time: datetime = Field(..., description="The busy time (ISO format)")
    duration_minutes: int = Field(30, gt=0, description="Duration in minutes")


class ResolveRequest(BaseModel):
    """Request to run parse, check and book-or-suggest in one go."""

    text: str
    attendee_name: str
    attendee_email: str
    kind: Literal["video", "in_person"] = "video"
    location: str | None = None
    subject: str | None = None
    description: str = ""
    duration_minutes: int | None = None
    now: datetime | None = None


# =============================================================================
# Endpoints
# =============================================================================


@router.post("/parse")
async def parse_time(request: ParseRequest, service: SchedulingService = Depends(get_service)):
    """Resolve a time phrase. resolved is null when the visitor must be asked again."""
    resolved = service.parse_time_request(request.text, now=request.now)
    if resolved is None:
        return {"resolved": None, "needsClarification": True}
    tz = service.config.tz
    return {
        "resolved": resolved.isoformat(),
        "needsClarification": False,
        "formatted": f"{format_time_slot(resolved, tz)} on {format_date(resolved, tz)}",
    }


@router.post("/availability", dependencies=[Depends(request_context)])
async def check_availability(
    request: AvailabilityRequest, service: SchedulingService = Depends(get_service)
):
    """Check whether the organizer is free."""
    try:
        result = await service.check_availability(request.start, request.duration_minutes)
    except ConfigurationError as e:
        raise _unavailable(e) from e
    return result.to_dict()


@router.post("/meetings", dependencies=[Depends(request_context)])
async def create_meeting(
    request: MeetingCreateRequest, service: SchedulingService = Depends(get_service)
) -> dict[str, Any]:
    """Book a video or in-person meeting. Invalid requests never reach the calendar."""
    kind = MeetingKind(request.kind)
    if request.duration_minutes is not None:
        duration = request.duration_minutes
    elif kind == MeetingKind.IN_PERSON:
        duration = service.config.in_person_duration_minutes
    else:
        duration = service.config.default_duration_minutes

    meeting = MeetingRequest(
        start_time=request.start_time,
        attendee=Attendee(name=request.attendee_name, email=request.attendee_email),
        kind=kind,
        duration_minutes=duration,
        subject=request.subject,
        location=request.location,
        description=request.description,
    )
    try:
        meeting.validate()
    except InvalidMeetingRequest as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    try:
        result = await service.booker.create_meeting(meeting)
    except ConfigurationError as e:
        raise _unavailable(e) from e
    return result.to_dict()


@router.post("/alternatives", dependencies=[Depends(request_context)])
async def suggest_alternatives(
    request: AlternativesRequest, service: SchedulingService = Depends(get_service)
):
    """Up to three replacement times, each with its full date."""
    try:
        alternatives = await service.suggest_alternatives(
            request.requested_time, request.duration_minutes
        )
    except ConfigurationError as e:
        raise _unavailable(e) from e
    return {"alternatives": [a.to_dict() for a in alternatives]}


@router.get("/phrases/{category}")
async def get_phrase(category: str, service: SchedulingService = Depends(get_service)):
    try:
        return {"category": category, "phrase": service.random_phrase(category)}
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


@router.post("/resolve", dependencies=[Depends(request_context)])
async def resolve(request: ResolveRequest, service: SchedulingService = Depends(get_service)):
    """Parse, check and then book or suggest."""
    try:
        outcome = await service.resolve(
            request.text,
            request.attendee_name,
            request.attendee_email,
            kind=MeetingKind(request.kind),
            location=request.location,
            subject=request.subject,
            description=request.description,
            duration_minutes=request.duration_minutes,
            now=request.now,
        )
    except ConfigurationError as e:
        raise _unavailable(e) from e
    if outcome.state == PipelineState.REJECTED:
        raise HTTPException(status_code=422, detail=outcome.error)
    return outcome.to_dict()
