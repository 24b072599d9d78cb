"""
Tool: Scheduling Models
Purpose: Data structures for the meeting scheduler (slots, busy periods, meetings)

Usage:
    from salesdesk.scheduling.models import AvailabilitySlot, BusyPeriod, MeetingRequest

Busy periods are deliberately opaque: only their start and end are kept, so
nothing about the organizer's other meetings can leak into conversation text.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from salesdesk.scheduling.errors import InvalidMeetingRequest


class MeetingKind(str, Enum):
    """How the meeting takes place."""

    VIDEO = "video"
    IN_PERSON = "in_person"


@dataclass(frozen=True)
class BusyPeriod:
    """
    An occupied interval [start, end) on the organizer's calendar.
    """

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.end <= self.start:
            raise ValueError(f"Busy period must end after it starts: {self.start} - {self.end}")

    def overlaps(self, start: datetime, end: datetime) -> bool:
        """Half-open interval overlap test."""
        return start < self.end and end > self.start

    def to_dict(self) -> dict[str, Any]:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}


@dataclass(frozen=True)
class AvailabilitySlot:
    """A free window of fixed duration inside business hours."""

    start: datetime
    end: datetime
    formatted: str

    @property
    def duration_minutes(self) -> int:
        return int((self.end - self.start) / timedelta(minutes=1))

    def to_dict(self) -> dict[str, Any]:
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "formatted": self.formatted,
        }


@dataclass(frozen=True)
class Alternative:
    """
    A suggested replacement time, always rendered with its full date.

    Conversation text has no other source for the date, so an alternative
    is never built from a bare slot. Use from_slot().
    """

    time: datetime
    formatted: str
    day: str
    full_date_time: str

    @classmethod
    def from_slot(cls, slot: AvailabilitySlot, day: str) -> "Alternative":
        return cls(
            time=slot.start,
            formatted=slot.formatted,
            day=day,
            full_date_time=f"{slot.formatted} on {day}",
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "time": self.time.isoformat(),
            "formatted": self.formatted,
            "day": self.day,
            "fullDateTime": self.full_date_time,
        }


@dataclass
class AvailabilityResult:
    """Outcome of a free/busy check. error is set when the answer is a policy default."""

    available: bool
    busy_periods: list[BusyPeriod] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "available": self.available,
            "busySlots": [p.to_dict() for p in self.busy_periods],
        }
        if self.error:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class Attendee:
    name: str
    email: str

    def to_graph(self) -> dict[str, Any]:
        return {
            "emailAddress": {"address": self.email, "name": self.name},
            "type": "required",
        }


@dataclass
class MeetingRequest:
    """
    A meeting to put on the organizer's calendar.

    Created per scheduling call and discarded afterwards.
    """

    start_time: datetime
    attendee: Attendee
    kind: MeetingKind = MeetingKind.VIDEO
    duration_minutes: int = 30
    subject: str | None = None
    location: str | None = None
    description: str = ""

    @property
    def end_time(self) -> datetime:
        return self.start_time + timedelta(minutes=self.duration_minutes)

    def validate(self) -> None:
        """
        Reject requests that must never reach the calendar provider.

        Raises:
            InvalidMeetingRequest: On a missing attendee email, a non-positive
                duration, or an in-person meeting without a location
        """
        if not self.attendee.email or not self.attendee.email.strip():
            raise InvalidMeetingRequest("Attendee email is required")
        if self.duration_minutes <= 0:
            raise InvalidMeetingRequest(
                f"Duration must be positive, got {self.duration_minutes} minutes"
            )
        if self.kind == MeetingKind.IN_PERSON and not (self.location or "").strip():
            raise InvalidMeetingRequest("In-person meetings require a location")


@dataclass
class MeetingResult:
    """Outcome of a booking attempt. Failures carry error and nothing else."""

    success: bool
    event_id: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    join_url: str | None = None
    location: str | None = None
    subject: str | None = None
    error: str | None = None

    @classmethod
    def failed(cls, error: str) -> "MeetingResult":
        return cls(success=False, error=error)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"success": self.success}
        optional = {
            "eventId": self.event_id,
            "joinUrl": self.join_url,
            "startTime": self.start_time.isoformat() if self.start_time else None,
            "endTime": self.end_time.isoformat() if self.end_time else None,
            "location": self.location,
            "subject": self.subject,
            "error": self.error,
        }
        data.update({k: v for k, v in optional.items() if v is not None})
        return data


@dataclass(frozen=True)
class CachedToken:
    """Bearer token and the absolute instant it stops being valid."""

    access_token: str
    expires_at: datetime

    def is_fresh(self, now: datetime, margin: timedelta) -> bool:
        return now < self.expires_at - margin
