"""
Tool: Scheduling Service
Purpose: One object per organizer wiring config, token cache, Graph client and components

Usage:
    from salesdesk.scheduling.service import get_default_service

    service = get_default_service()
    when = service.parse_time_request("next Tuesday at 2pm")
    availability = await service.check_availability(when)
"""

from __future__ import annotations

import random
from collections.abc import Callable
from datetime import datetime, timedelta

import httpx

from salesdesk.logging_config import get_logger
from salesdesk.scheduling.alternatives import AlternativeSuggester
from salesdesk.scheduling.availability import AvailabilityChecker, SlotFinder
from salesdesk.scheduling.booker import MeetingBooker
from salesdesk.scheduling.config_models import (
    MicrosoftCredentials,
    SchedulingConfig,
    load_scheduling_config,
)
from salesdesk.scheduling.graph_client import GraphClient
from salesdesk.scheduling.models import (
    Alternative,
    Attendee,
    AvailabilityResult,
    AvailabilitySlot,
    MeetingKind,
    MeetingResult,
)
from salesdesk.scheduling.parser import TimeRequestParser
from salesdesk.scheduling.phrases import PhraseProvider
from salesdesk.scheduling.pipeline import PipelineOutcome, SchedulingPipeline
from salesdesk.scheduling.token_cache import TokenCache, _utcnow

logger = get_logger(__name__)


class SchedulingService:
    """
    Facade over the scheduler components for a single organizer.

    A transport may be injected to fake Microsoft Graph and the token
    endpoint in tests; a clock drives token expiry.
    """

    def __init__(
        self,
        config: SchedulingConfig | None = None,
        credentials: MicrosoftCredentials | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], datetime] = _utcnow,
        rng: random.Random | None = None,
    ):
        self.config = config if config is not None else load_scheduling_config()
        self.credentials = credentials if credentials is not None else MicrosoftCredentials.from_env()

        self.token_cache = TokenCache(
            self.credentials,
            refresh_margin=timedelta(seconds=self.config.token_refresh_margin_seconds),
            timeout=self.config.request_timeout_seconds,
            transport=transport,
            clock=clock,
        )
        self.graph = GraphClient(
            self.token_cache,
            timeout=self.config.request_timeout_seconds,
            transport=transport,
        )

        self.parser = TimeRequestParser(self.config.tz, self.config.default_time_hour)
        self.checker = AvailabilityChecker(self.graph, self.config)
        self.slot_finder = SlotFinder(self.graph, self.config)
        self.suggester = AlternativeSuggester(self.slot_finder)
        self.booker = MeetingBooker(self.graph, self.config)
        self.phrases = PhraseProvider(rng=rng)
        self.pipeline = SchedulingPipeline(
            self.parser, self.checker, self.booker, self.suggester, self.phrases
        )

    def parse_time_request(self, text: str, now: datetime | None = None) -> datetime | None:
        return self.parser.parse(text, now=now)

    async def check_availability(self, start: datetime, duration_minutes: int = 30) -> AvailabilityResult:
        return await self.checker.check_availability(start, duration_minutes)

    async def find_available_slots(self, day, duration_minutes: int = 30) -> list[AvailabilitySlot]:
        return await self.slot_finder.find_available_slots(day, duration_minutes)

    async def suggest_alternatives(
        self, requested_time: datetime, duration_minutes: int = 30
    ) -> list[Alternative]:
        return await self.suggester.suggest_alternatives(requested_time, duration_minutes)

    async def create_video_meeting(self, **kwargs) -> MeetingResult:
        return await self.booker.create_video_meeting(**kwargs)

    async def create_in_person_meeting(self, **kwargs) -> MeetingResult:
        return await self.booker.create_in_person_meeting(**kwargs)

    def random_phrase(self, category: str) -> str:
        return self.phrases.random_phrase(category)

    async def resolve(
        self,
        text: str,
        attendee_name: str,
        attendee_email: str,
        kind: MeetingKind = MeetingKind.VIDEO,
        **kwargs,
    ) -> PipelineOutcome:
        """Run the full pipeline: parse, check, then book or suggest."""
        return await self.pipeline.run(
            text,
            Attendee(name=attendee_name, email=attendee_email),
            kind=kind,
            **kwargs,
        )


_default_service: SchedulingService | None = None


def get_default_service() -> SchedulingService:
    """Process-wide service built from args/scheduling.yaml and the environment."""
    global _default_service
    if _default_service is None:
        _default_service = SchedulingService()
    return _default_service


def reset_default_service() -> None:
    global _default_service
    _default_service = None
