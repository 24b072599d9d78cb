"""
Tool: Meeting Booker
Purpose: Create video or in-person meetings on the organizer's calendar

The organizer owns the event and Graph sends the invitation to the single
required attendee. Video meetings ask Graph for a Teams link; in-person
meetings carry a location instead.

Booking never raises for provider trouble: every failure comes back as
MeetingResult(success=False, error=...) so the caller can fall back to
"someone will confirm by email". Requests are validated before anything
touches the network.

Usage:
    booker = MeetingBooker(graph, config)
    result = await booker.create_video_meeting(
        start_time=start,
        attendee_name="Jane Smith",
        attendee_email="jane@school.org",
    )
"""

from __future__ import annotations

import html
from datetime import datetime
from typing import Any

from salesdesk.logging_config import get_logger
from salesdesk.scheduling.config_models import SchedulingConfig
from salesdesk.scheduling.errors import AuthError, InvalidMeetingRequest
from salesdesk.scheduling.graph_client import GraphClient
from salesdesk.scheduling.models import Attendee, MeetingKind, MeetingRequest, MeetingResult

logger = get_logger(__name__)

VIDEO_LOCATION = "Microsoft Teams Meeting"
ONLINE_MEETING_PROVIDER = "teamsForBusiness"


class MeetingBooker:
    def __init__(self, graph: GraphClient, config: SchedulingConfig):
        self.graph = graph
        self.config = config

    def _local_graph_time(self, value: datetime) -> dict[str, str]:
        if value.tzinfo is None:
            value = value.replace(tzinfo=self.config.tz)
        local = value.astimezone(self.config.tz)
        return {
            "dateTime": local.strftime("%Y-%m-%dT%H:%M:%S"),
            "timeZone": self.config.graph_timezone,
        }

    def _default_subject(self, request: MeetingRequest) -> str:
        company = self.config.company_name
        if request.kind == MeetingKind.IN_PERSON:
            return f"{company} Meeting with {request.attendee.name}"
        return f"{company} Demo with {request.attendee.name}"

    def _default_body(self, request: MeetingRequest) -> str:
        name = html.escape(request.attendee.name)
        company = html.escape(self.config.company_name)
        if request.kind == MeetingKind.IN_PERSON:
            location = html.escape(request.location or "")
            return (
                f"<p>In-person meeting with {name}</p>"
                f"<p>Location: {location}</p>"
                f"<p>Booked by the {company} website assistant</p>"
            )
        return (
            f"<p>Demo call with {name} from {company}</p>"
            f"<p>Booked by the {company} website assistant</p>"
        )

    def build_event(self, request: MeetingRequest) -> dict[str, Any]:
        """Graph event payload for a validated request."""
        event: dict[str, Any] = {
            "subject": request.subject or self._default_subject(request),
            "body": {
                "contentType": "HTML",
                "content": request.description or self._default_body(request),
            },
            "start": self._local_graph_time(request.start_time),
            "end": self._local_graph_time(request.end_time),
            "attendees": [request.attendee.to_graph()],
        }

        if request.kind == MeetingKind.VIDEO:
            event["location"] = {"displayName": VIDEO_LOCATION}
            event["isOnlineMeeting"] = True
            event["onlineMeetingProvider"] = ONLINE_MEETING_PROVIDER
        else:
            event["location"] = {"displayName": request.location}
            event["isOnlineMeeting"] = False

        return event

    async def create_meeting(self, request: MeetingRequest) -> MeetingResult:
        """
        Validate, then create the event.

        Raises:
            ConfigurationError: If credentials or organizer are not configured
        """
        try:
            request.validate()
        except InvalidMeetingRequest as e:
            logger.warning("meeting_request_invalid", kind=request.kind.value, error=str(e))
            return MeetingResult.failed(str(e))

        organizer = self.config.require_organizer()
        event = self.build_event(request)

        try:
            result = await self.graph.create_event(organizer, event)
        except AuthError as e:
            logger.error("meeting_create_failed", kind=request.kind.value, error=str(e))
            return MeetingResult.failed(str(e))

        if not result.get("success"):
            logger.error("meeting_create_failed", kind=request.kind.value, error=result.get("error"))
            return MeetingResult.failed(f"Failed to create meeting: {result.get('error')}")

        data = result.get("data") or {}
        if not isinstance(data, dict):
            logger.error("meeting_create_failed", kind=request.kind.value, error="malformed response")
            return MeetingResult.failed("Failed to create meeting: malformed response from calendar")

        join_url = None
        if request.kind == MeetingKind.VIDEO:
            join_url = (data.get("onlineMeeting") or {}).get("joinUrl") or data.get("webLink")

        logger.info("meeting_created", kind=request.kind.value, event_id=data.get("id"))

        return MeetingResult(
            success=True,
            event_id=data.get("id"),
            start_time=request.start_time,
            end_time=request.end_time,
            join_url=join_url,
            location=event["location"]["displayName"],
            subject=data.get("subject") or event["subject"],
        )

    async def create_video_meeting(
        self,
        start_time: datetime,
        attendee_name: str,
        attendee_email: str,
        duration_minutes: int | None = None,
        subject: str | None = None,
        description: str = "",
    ) -> MeetingResult:
        """Teams meeting with a join link."""
        return await self.create_meeting(MeetingRequest(
            start_time=start_time,
            attendee=Attendee(name=attendee_name, email=attendee_email),
            kind=MeetingKind.VIDEO,
            duration_minutes=duration_minutes or self.config.default_duration_minutes,
            subject=subject,
            description=description,
        ))

    async def create_in_person_meeting(
        self,
        start_time: datetime,
        attendee_name: str,
        attendee_email: str,
        location: str,
        duration_minutes: int | None = None,
        subject: str | None = None,
        description: str = "",
    ) -> MeetingResult:
        """Calendar event at a physical location, no conferencing link."""
        return await self.create_meeting(MeetingRequest(
            start_time=start_time,
            attendee=Attendee(name=attendee_name, email=attendee_email),
            kind=MeetingKind.IN_PERSON,
            duration_minutes=duration_minutes or self.config.in_person_duration_minutes,
            subject=subject,
            location=location,
            description=description,
        ))
