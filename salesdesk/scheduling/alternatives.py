"""
Tool: Alternative Suggester
Purpose: Offer up to three replacement times when a requested slot is busy

Closeness to what was asked beats earliness: same-day slots within two
hours of the requested hour come first, then one next-morning slot.
Each suggestion carries its own full date so the conversation never
loses track of which day is meant.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from salesdesk.logging_config import get_logger
from salesdesk.scheduling.availability import SlotFinder
from salesdesk.scheduling.formatting import format_date
from salesdesk.scheduling.models import Alternative

logger = get_logger(__name__)

MAX_ALTERNATIVES = 3
MAX_SAME_DAY = 2
SAME_DAY_HOUR_WINDOW = 2
NEXT_DAY_MORNING_HOURS = range(9, 12)


class AlternativeSuggester:
    def __init__(self, slot_finder: SlotFinder):
        self.slot_finder = slot_finder

    async def suggest_alternatives(
        self,
        requested_time: datetime,
        duration_minutes: int = 30,
    ) -> list[Alternative]:
        """Recomputed on every call; the calendar may have changed."""
        tz = self.slot_finder.config.tz
        if requested_time.tzinfo is None:
            requested_time = requested_time.replace(tzinfo=tz)
        else:
            requested_time = requested_time.astimezone(tz)

        requested_day = requested_time.date()
        next_day = requested_day + timedelta(days=1)

        same_day_slots = await self.slot_finder.find_available_slots(requested_day, duration_minutes)
        next_day_slots = await self.slot_finder.find_available_slots(next_day, duration_minutes)

        alternatives: list[Alternative] = []
        same_day_label = format_date(requested_day)

        for slot in same_day_slots:
            if len(alternatives) >= MAX_SAME_DAY:
                break
            if slot.start == requested_time:
                continue
            if abs(slot.start.hour - requested_time.hour) <= SAME_DAY_HOUR_WINDOW:
                alternatives.append(Alternative.from_slot(slot, same_day_label))

        if len(alternatives) < MAX_ALTERNATIVES:
            morning = next(
                (s for s in next_day_slots if s.start.hour in NEXT_DAY_MORNING_HOURS),
                None,
            )
            if morning:
                alternatives.append(Alternative.from_slot(morning, format_date(next_day)))

        logger.info(
            "alternatives_suggested",
            requested=requested_time.isoformat(),
            count=len(alternatives),
        )
        return alternatives[:MAX_ALTERNATIVES]
