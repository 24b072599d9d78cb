"""
Tool: Availability
Purpose: Free/busy checks and free-slot enumeration on the organizer's calendar

Read paths never block a sales conversation: when the provider cannot be
reached the checker answers with the configured fail-open default (and an
error note), and the slot finder answers with no slots. Only missing
configuration propagates.

Usage:
    checker = AvailabilityChecker(graph, config)
    result = await checker.check_availability(start, duration_minutes=30)

    finder = SlotFinder(graph, config)
    slots = await finder.find_available_slots(date(2026, 10, 20))
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from datetime import date, datetime, time, timedelta
from typing import Any

from salesdesk.logging_config import get_logger
from salesdesk.scheduling.config_models import SchedulingConfig
from salesdesk.scheduling.errors import (
    AuthError,
    ConfigurationError,
    ProviderUnavailable,
)
from salesdesk.scheduling.formatting import format_time_slot
from salesdesk.scheduling.graph_client import GraphClient, parse_graph_datetime
from salesdesk.scheduling.models import AvailabilityResult, AvailabilitySlot, BusyPeriod

logger = get_logger(__name__)


def _graph_items(result: dict[str, Any]) -> list[Any]:
    """
    The value list of a successful Graph collection response.

    Raises:
        ProviderUnavailable: If the body is not a collection
    """
    data = result.get("data")
    if not isinstance(data, dict):
        raise ProviderUnavailable(f"Malformed calendar response: {type(data).__name__} body")
    items = data.get("value") or []
    if not isinstance(items, list):
        raise ProviderUnavailable("Malformed calendar response: value is not a list")
    return items


def busy_periods_from_graph(items: Iterable[dict[str, Any]]) -> list[BusyPeriod]:
    """
    Reduce Graph events or schedule items to bare intervals.

    Cancelled events are dropped. Only start and end survive.

    Raises:
        ValueError: If an item is not an object or has no parseable start/end
    """
    periods = []
    for item in items:
        if not isinstance(item, dict):
            raise ValueError(f"Malformed calendar item: {type(item).__name__}")
        if item.get("isCancelled"):
            continue
        start = parse_graph_datetime(item.get("start") or {})
        end = parse_graph_datetime(item.get("end") or {})
        if end <= start:
            logger.debug("zero_length_event_skipped", start=start.isoformat())
            continue
        periods.append(BusyPeriod(start=start, end=end))
    return periods


def iter_free_slots(
    window_start: datetime,
    window_end: datetime,
    busy_periods: list[BusyPeriod],
    duration_minutes: int,
    step_minutes: int = 30,
) -> Iterator[AvailabilitySlot]:
    """
    Walk the window in fixed steps, yielding windows that overlap nothing busy.

    The step does not depend on the duration, so yielded slots can overlap
    one another. No slot runs past window_end.
    """
    duration = timedelta(minutes=duration_minutes)
    step = timedelta(minutes=step_minutes)
    current = window_start

    while current < window_end:
        slot_end = current + duration
        if slot_end > window_end:
            break
        if not any(busy.overlaps(current, slot_end) for busy in busy_periods):
            yield AvailabilitySlot(
                start=current,
                end=slot_end,
                formatted=format_time_slot(current, window_start.tzinfo),
            )
        current += step


class AvailabilityChecker:
    """
    Answers "is this window free?" for the organizer.

    Uses the free/busy schedule endpoint first and the calendar view as a
    fallback when the schedule endpoint fails.
    """

    def __init__(self, graph: GraphClient, config: SchedulingConfig):
        self.graph = graph
        self.config = config

    def _localize(self, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=self.config.tz)
        return value

    def _policy_default(self, error: str) -> AvailabilityResult:
        return AvailabilityResult(available=self.config.fail_open, busy_periods=[], error=error)

    async def check_availability(
        self,
        start: datetime,
        duration_minutes: int = 30,
    ) -> AvailabilityResult:
        """
        Check whether [start, start + duration) is free.

        Raises:
            ConfigurationError: If credentials or organizer are not configured
        """
        organizer = self.config.require_organizer()
        start = self._localize(start)
        end = start + timedelta(minutes=duration_minutes)

        try:
            result = await self.graph.get_schedule(organizer, start, end, duration_minutes)
            schedules = result.get("data", {}).get("value") if result.get("success") else None

            if not result.get("success") or (schedules and schedules[0].get("error")):
                error = result.get("error") or schedules[0]["error"].get("message", "schedule error")
                logger.warning("schedule_query_failed", error=error)
                return await self._check_calendar_view(organizer, start, end)

            if not schedules:
                return AvailabilityResult(available=True)

            schedule = schedules[0]
            items = schedule.get("scheduleItems") or []
            view = schedule.get("availabilityView") or ""
            available = view[:1] == "0" or not items

            availability = AvailabilityResult(
                available=available,
                busy_periods=busy_periods_from_graph(items),
            )
        except ConfigurationError:
            raise
        except Exception as e:
            logger.error("availability_check_failed", error=str(e), fail_open=self.config.fail_open)
            return self._policy_default(str(e))

        logger.info("availability_checked", start=start.isoformat(), available=availability.available)
        return availability

    async def _check_calendar_view(
        self,
        organizer: str,
        start: datetime,
        end: datetime,
    ) -> AvailabilityResult:
        """Fallback: available iff no events overlap the window."""
        try:
            result = await self.graph.calendar_view(organizer, start, end)
            if not result.get("success"):
                raise ProviderUnavailable(f"Calendar query failed: {result.get('error')}")

            periods = busy_periods_from_graph(_graph_items(result))
        except ConfigurationError:
            raise
        except Exception as e:
            logger.error("calendar_view_check_failed", error=str(e), fail_open=self.config.fail_open)
            return self._policy_default(str(e))

        logger.info("availability_checked_direct", start=start.isoformat(), available=not periods)
        return AvailabilityResult(available=not periods, busy_periods=periods)


class SlotFinder:
    """Enumerates free slots on one day within business hours."""

    def __init__(self, graph: GraphClient, config: SchedulingConfig):
        self.graph = graph
        self.config = config

    def business_window(self, day: date) -> tuple[datetime, datetime]:
        hours = self.config.business_hours
        tz = self.config.tz
        return (
            datetime.combine(day, time(hours.start_hour), tzinfo=tz),
            datetime.combine(day, time(hours.end_hour), tzinfo=tz),
        )

    async def fetch_busy_periods(self, window_start: datetime, window_end: datetime) -> list[BusyPeriod]:
        """
        Raises:
            ConfigurationError: If credentials or organizer are not configured
            AuthError: If a token cannot be obtained
            ProviderUnavailable: If the calendar query fails
        """
        organizer = self.config.require_organizer()
        result = await self.graph.calendar_view(organizer, window_start, window_end)
        if not result.get("success"):
            raise ProviderUnavailable(f"Calendar query failed: {result.get('error')}")
        return busy_periods_from_graph(_graph_items(result))

    async def find_available_slots(
        self,
        day: date,
        duration_minutes: int = 30,
    ) -> list[AvailabilitySlot]:
        """
        Free slots on the given day, in time order.

        Returns an empty list when the calendar cannot be read.
        """
        if isinstance(day, datetime):
            day = (day.astimezone(self.config.tz) if day.tzinfo else day).date()

        window_start, window_end = self.business_window(day)

        try:
            busy_periods = await self.fetch_busy_periods(window_start, window_end)
        except ConfigurationError:
            raise
        except (AuthError, ProviderUnavailable, ValueError, KeyError, TypeError) as e:
            logger.error("find_slots_failed", day=day.isoformat(), error=str(e))
            return []

        slots = list(
            iter_free_slots(
                window_start,
                window_end,
                busy_periods,
                duration_minutes,
                self.config.slot_step_minutes,
            )
        )
        logger.info("slots_found", day=day.isoformat(), count=len(slots), busy=len(busy_periods))
        return slots
