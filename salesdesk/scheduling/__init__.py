"""Natural-language meeting scheduler on the organizer's Microsoft 365 calendar.

Components:
    parser.py: free-text time phrase -> datetime
    availability.py: free/busy checks and free-slot enumeration
    alternatives.py: replacement times when a slot is busy
    booker.py: video and in-person meeting creation
    phrases.py: status language that hides calendar load
    pipeline.py: parse -> check -> book or suggest
    service.py: per-organizer facade wiring everything together

The module-level functions below use the process-wide default service,
configured from args/scheduling.yaml and the environment.
"""

from datetime import datetime

from salesdesk.scheduling.errors import (
    AuthError,
    ConfigurationError,
    InvalidMeetingRequest,
    ProviderUnavailable,
    SchedulingError,
)
from salesdesk.scheduling.formatting import format_date, format_time_slot
from salesdesk.scheduling.models import (
    Alternative,
    Attendee,
    AvailabilityResult,
    AvailabilitySlot,
    BusyPeriod,
    MeetingKind,
    MeetingRequest,
    MeetingResult,
)
from salesdesk.scheduling.parser import parse_time_request
from salesdesk.scheduling.phrases import random_phrase
from salesdesk.scheduling.service import SchedulingService, get_default_service


async def check_availability(start: datetime, duration_minutes: int = 30) -> AvailabilityResult:
    return await get_default_service().check_availability(start, duration_minutes)


async def find_available_slots(day, duration_minutes: int = 30) -> list[AvailabilitySlot]:
    return await get_default_service().find_available_slots(day, duration_minutes)


async def suggest_alternatives(requested_time: datetime) -> list[Alternative]:
    return await get_default_service().suggest_alternatives(requested_time)


async def create_video_meeting(**kwargs) -> MeetingResult:
    return await get_default_service().create_video_meeting(**kwargs)


async def create_in_person_meeting(**kwargs) -> MeetingResult:
    return await get_default_service().create_in_person_meeting(**kwargs)


__all__ = [
    "Alternative",
    "Attendee",
    "AuthError",
    "AvailabilityResult",
    "AvailabilitySlot",
    "BusyPeriod",
    "ConfigurationError",
    "InvalidMeetingRequest",
    "MeetingKind",
    "MeetingRequest",
    "MeetingResult",
    "ProviderUnavailable",
    "SchedulingError",
    "SchedulingService",
    "check_availability",
    "create_in_person_meeting",
    "create_video_meeting",
    "find_available_slots",
    "format_date",
    "format_time_slot",
    "get_default_service",
    "parse_time_request",
    "random_phrase",
    "suggest_alternatives",
]
