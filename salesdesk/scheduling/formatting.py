"""Display formatting for dates and slot times.

Names are fixed English so output does not depend on the process locale.
Aware datetimes are shown in the organizer's zone (Europe/London unless a
zone is passed); naive values are taken as already local.
"""

from __future__ import annotations

from datetime import date, datetime, tzinfo
from zoneinfo import ZoneInfo

DEFAULT_TIMEZONE = ZoneInfo("Europe/London")

WEEKDAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


def _to_local(value: date, tz: tzinfo | None) -> date:
    if isinstance(value, datetime) and value.tzinfo is not None:
        return value.astimezone(tz or DEFAULT_TIMEZONE)
    return value


def format_date(value: date, tz: tzinfo | None = None) -> str:
    """Format as "Weekday, D Month", e.g. "Tuesday, 20 October"."""
    value = _to_local(value, tz)
    return f"{WEEKDAY_NAMES[value.weekday()]}, {value.day} {MONTH_NAMES[value.month - 1]}"


def format_time_slot(value: datetime, tz: tzinfo | None = None) -> str:
    """Format as 24-hour "HH:MM" in the organizer's zone."""
    value = _to_local(value, tz)
    return f"{value.hour:02d}:{value.minute:02d}"
