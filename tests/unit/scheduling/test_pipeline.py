"""Tests for salesdesk/scheduling/pipeline.py

Runs the full parse -> check -> book-or-suggest flow through a
SchedulingService wired to the fake Graph.
"""

from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from salesdesk.scheduling.config_models import SchedulingConfig
from salesdesk.scheduling.errors import ConfigurationError
from salesdesk.scheduling.models import Attendee, MeetingKind
from salesdesk.scheduling.phrases import PHRASES
from salesdesk.scheduling.pipeline import PipelineState
from salesdesk.scheduling.service import SchedulingService

LONDON = ZoneInfo("Europe/London")
JANE = Attendee(name="Jane Smith", email="jane@school.org")


class TestResolution:
    """Terminal states and the trail that led to them."""

    @pytest.mark.asyncio
    async def test_free_slot_is_booked_with_join_url(self, service, fake_graph, now):
        outcome = await service.pipeline.run("next Tuesday at 2pm", JANE, now=now)

        assert outcome.state == PipelineState.BOOKED
        assert outcome.trail == [
            PipelineState.PARSING,
            PipelineState.CHECKING,
            PipelineState.BOOKING,
            PipelineState.BOOKED,
        ]
        assert outcome.requested_time == datetime(2026, 10, 27, 14, 0, tzinfo=LONDON)
        assert outcome.availability.available is True
        assert outcome.meeting.success is True
        assert outcome.meeting.join_url.startswith("https://teams.microsoft.com/")
        assert outcome.phrase in PHRASES["available"]
        assert outcome.finished

    @pytest.mark.asyncio
    async def test_unparseable_text_asks_again(self, service, fake_graph, now):
        outcome = await service.pipeline.run("whenever", JANE, now=now)

        assert outcome.state == PipelineState.CLARIFY
        assert outcome.requested_time is None
        assert fake_graph.requests == []

    @pytest.mark.asyncio
    async def test_busy_slot_offers_alternatives(self, service, fake_graph, now):
        tomorrow_two = datetime(2026, 10, 20, 14, 0, tzinfo=LONDON)
        fake_graph.add_busy(tomorrow_two, tomorrow_two.replace(minute=30))

        outcome = await service.pipeline.run("tomorrow at 2pm", JANE, now=now)

        assert outcome.state == PipelineState.ALTERNATIVES_OFFERED
        assert outcome.trail[-3:] == [
            PipelineState.BUSY,
            PipelineState.SUGGESTING,
            PipelineState.ALTERNATIVES_OFFERED,
        ]
        assert 0 < len(outcome.alternatives) <= 3
        assert outcome.meeting is None
        assert outcome.phrase in PHRASES["busy"]
        assert fake_graph.created_events == []

    @pytest.mark.asyncio
    async def test_failed_booking_falls_back(self, service, fake_graph, now):
        fake_graph.event_status = 500

        outcome = await service.pipeline.run("tomorrow at 2pm", JANE, now=now)

        assert outcome.state == PipelineState.FALLBACK
        assert PipelineState.BOOK_FAILED in outcome.trail
        assert outcome.meeting.success is False
        assert outcome.error == outcome.meeting.error
        assert outcome.phrase is None

    @pytest.mark.asyncio
    async def test_in_person_without_location_rejected_before_calendar(self, service, fake_graph, now):
        outcome = await service.pipeline.run(
            "tomorrow at 2pm", JANE, kind=MeetingKind.IN_PERSON, now=now
        )

        assert outcome.state == PipelineState.REJECTED
        assert outcome.trail == [PipelineState.PARSING, PipelineState.REJECTED]
        assert outcome.finished
        assert outcome.error == "In-person meetings require a location"
        assert outcome.availability is None
        assert outcome.phrase is None
        assert fake_graph.graph_paths() == []

    @pytest.mark.asyncio
    async def test_missing_email_rejected_before_calendar(self, service, fake_graph, now):
        outcome = await service.pipeline.run(
            "tomorrow at 2pm", Attendee(name="Jane Smith", email=""), now=now
        )

        assert outcome.state == PipelineState.REJECTED
        assert fake_graph.requests == []

    @pytest.mark.asyncio
    async def test_in_person_uses_longer_default(self, service, fake_graph, now):
        outcome = await service.pipeline.run(
            "tomorrow at 2pm", JANE, kind=MeetingKind.IN_PERSON, location="Leeds office", now=now
        )

        assert outcome.state == PipelineState.BOOKED
        assert fake_graph.created_events[0]["end"]["dateTime"] == "2026-10-20T15:00:00"

    @pytest.mark.asyncio
    async def test_unreadable_calendar_books_anyway(self, service, fake_graph, now):
        fake_graph.schedule_status = 500
        fake_graph.calendar_view_status = 500

        outcome = await service.pipeline.run("tomorrow at 2pm", JANE, now=now)

        assert outcome.availability.error
        assert outcome.state == PipelineState.BOOKED

    @pytest.mark.asyncio
    async def test_missing_organizer_raises(self, credentials, fake_graph, now):
        service = SchedulingService(
            config=SchedulingConfig(), credentials=credentials, transport=fake_graph.transport
        )

        with pytest.raises(ConfigurationError):
            await service.pipeline.run("tomorrow at 2pm", JANE, now=now)


class TestOutcomeDict:
    @pytest.mark.asyncio
    async def test_booked_outcome(self, service, now):
        outcome = await service.resolve(
            "tomorrow at 2pm", "Jane Smith", "jane@school.org", now=now
        )

        data = outcome.to_dict()
        assert data["state"] == "booked"
        assert data["trail"] == ["parsing", "checking", "booking", "booked"]
        assert data["requestedTime"] == "2026-10-20T14:00:00+01:00"
        assert data["formatted"] == "14:00 on Tuesday, 20 October"
        assert data["meeting"]["success"] is True
        assert data["alternatives"] == []

    @pytest.mark.asyncio
    async def test_clarify_outcome(self, service, now):
        outcome = await service.resolve("hmm", "Jane Smith", "jane@school.org", now=now)

        assert outcome.to_dict() == {
            "state": "clarify",
            "trail": ["parsing", "clarify"],
            "requestedTime": None,
            "alternatives": [],
        }
