"""
Tool: Scheduling Pipeline
Purpose: Take a raw time phrase all the way to a booked meeting or a set of alternatives

States:
    PARSING -> CLARIFY                                    (nothing understood)
    PARSING -> REJECTED                                   (request can never be booked)
    PARSING -> CHECKING -> BOOKING -> BOOKED
                                   -> BOOK_FAILED -> FALLBACK
                        -> BUSY -> SUGGESTING -> ALTERNATIVES_OFFERED

FALLBACK means "someone will confirm by email"; sending that email is the
caller's job. REJECTED is decided before the calendar is touched, so no
confirmation is promised. Nothing is retried.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from salesdesk.logging_config import get_logger
from salesdesk.scheduling.alternatives import AlternativeSuggester
from salesdesk.scheduling.availability import AvailabilityChecker
from salesdesk.scheduling.booker import MeetingBooker
from salesdesk.scheduling.errors import InvalidMeetingRequest
from salesdesk.scheduling.formatting import format_date, format_time_slot
from salesdesk.scheduling.models import (
    Alternative,
    Attendee,
    AvailabilityResult,
    MeetingKind,
    MeetingRequest,
    MeetingResult,
)
from salesdesk.scheduling.parser import TimeRequestParser
from salesdesk.scheduling.phrases import PhraseProvider

logger = get_logger(__name__)


class PipelineState(str, Enum):
    PARSING = "parsing"
    CLARIFY = "clarify"
    REJECTED = "rejected"
    CHECKING = "checking"
    BOOKING = "booking"
    BOOKED = "booked"
    BOOK_FAILED = "book_failed"
    FALLBACK = "fallback"
    BUSY = "busy"
    SUGGESTING = "suggesting"
    ALTERNATIVES_OFFERED = "alternatives_offered"


TERMINAL_STATES = frozenset({
    PipelineState.CLARIFY,
    PipelineState.REJECTED,
    PipelineState.BOOKED,
    PipelineState.FALLBACK,
    PipelineState.ALTERNATIVES_OFFERED,
})


@dataclass
class PipelineOutcome:
    """Where a run ended and everything learned on the way."""

    state: PipelineState = PipelineState.PARSING
    trail: list[PipelineState] = field(default_factory=lambda: [PipelineState.PARSING])
    requested_time: datetime | None = None
    availability: AvailabilityResult | None = None
    meeting: MeetingResult | None = None
    alternatives: list[Alternative] = field(default_factory=list)
    phrase: str | None = None
    error: str | None = None

    def advance(self, state: PipelineState) -> None:
        self.state = state
        self.trail.append(state)

    @property
    def finished(self) -> bool:
        return self.state in TERMINAL_STATES

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "state": self.state.value,
            "trail": [s.value for s in self.trail],
            "requestedTime": self.requested_time.isoformat() if self.requested_time else None,
            "alternatives": [a.to_dict() for a in self.alternatives],
        }
        if self.requested_time:
            tz = self.requested_time.tzinfo
            data["formatted"] = (
                f"{format_time_slot(self.requested_time, tz)} on {format_date(self.requested_time, tz)}"
            )
        if self.availability is not None:
            data["availability"] = self.availability.to_dict()
        if self.meeting is not None:
            data["meeting"] = self.meeting.to_dict()
        if self.phrase:
            data["phrase"] = self.phrase
        if self.error:
            data["error"] = self.error
        return data


class SchedulingPipeline:
    def __init__(
        self,
        parser: TimeRequestParser,
        checker: AvailabilityChecker,
        booker: MeetingBooker,
        suggester: AlternativeSuggester,
        phrases: PhraseProvider,
    ):
        self.parser = parser
        self.checker = checker
        self.booker = booker
        self.suggester = suggester
        self.phrases = phrases

    def _duration_for(self, kind: MeetingKind, duration_minutes: int | None) -> int:
        if duration_minutes:
            return duration_minutes
        config = self.booker.config
        if kind == MeetingKind.IN_PERSON:
            return config.in_person_duration_minutes
        return config.default_duration_minutes

    async def run(
        self,
        text: str,
        attendee: Attendee,
        kind: MeetingKind = MeetingKind.VIDEO,
        location: str | None = None,
        subject: str | None = None,
        description: str = "",
        duration_minutes: int | None = None,
        now: datetime | None = None,
    ) -> PipelineOutcome:
        """
        Resolve text and act on it.

        Raises:
            ConfigurationError: If credentials or organizer are not configured
        """
        outcome = PipelineOutcome()
        duration = self._duration_for(kind, duration_minutes)

        requested = self.parser.parse(text, now=now)
        if requested is None:
            outcome.advance(PipelineState.CLARIFY)
            logger.info("pipeline_finished", state=outcome.state.value)
            return outcome
        outcome.requested_time = requested

        request = MeetingRequest(
            start_time=requested,
            attendee=attendee,
            kind=kind,
            duration_minutes=duration,
            subject=subject,
            location=location,
            description=description,
        )
        try:
            request.validate()
        except InvalidMeetingRequest as e:
            outcome.error = str(e)
            outcome.advance(PipelineState.REJECTED)
            logger.warning("pipeline_rejected", kind=kind.value, error=outcome.error)
            return outcome

        outcome.advance(PipelineState.CHECKING)
        outcome.availability = await self.checker.check_availability(requested, duration)

        if outcome.availability.available:
            outcome.advance(PipelineState.BOOKING)
            outcome.meeting = await self.booker.create_meeting(request)
            if outcome.meeting.success:
                outcome.advance(PipelineState.BOOKED)
                outcome.phrase = self.phrases.random_phrase("available")
            else:
                outcome.advance(PipelineState.BOOK_FAILED)
                outcome.error = outcome.meeting.error
                outcome.advance(PipelineState.FALLBACK)
        else:
            outcome.advance(PipelineState.BUSY)
            outcome.advance(PipelineState.SUGGESTING)
            outcome.alternatives = await self.suggester.suggest_alternatives(requested, duration)
            outcome.advance(PipelineState.ALTERNATIVES_OFFERED)
            outcome.phrase = self.phrases.random_phrase("busy")

        logger.info(
            "pipeline_finished",
            state=outcome.state.value,
            kind=kind.value,
            alternatives=len(outcome.alternatives),
        )
        return outcome
