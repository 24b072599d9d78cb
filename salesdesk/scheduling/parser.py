"""Time request parsing for the meeting scheduler.

Turns a free-text phrase ("next Tuesday at 2pm", "9th February", "3pm")
into one concrete datetime in the organizer's zone, or None when the text
names neither a day nor a time.

Parsing is split into independent matchers, each returning an optional
partial result:

    match_time_of_day   -> TimeOfDay | None
    DATE_MATCHERS       -> DateMatch | None, tried in order, first match wins
        match_explicit_date  "9th February", "Feb 10"
        match_relative_day   "tomorrow", "next week"
        match_weekday        "Tuesday", "next Tuesday"

and compose() merges them. Precedence lives in DATE_MATCHERS, nowhere else.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from zoneinfo import ZoneInfo

from salesdesk.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEZONE = "Europe/London"
DEFAULT_HOUR = 10


@dataclass(frozen=True)
class TimeOfDay:
    hour: int
    minute: int = 0


@dataclass(frozen=True)
class DateMatch:
    day: date
    rule: str


DateMatcher = Callable[[str, date], "DateMatch | None"]


# =============================================================================
# Time of day
# =============================================================================

_MERIDIEM = r"(am|pm|a\.m\.|p\.m\.)"

# Ordered: "2:30pm"/"14:00", then "2pm", then "at 2"
_TIME_PATTERNS: list[re.Pattern] = [
    re.compile(rf"\b(\d{{1,2}}):(\d{{2}})\s*(?:{_MERIDIEM}(?![a-z]))?"),
    re.compile(rf"\b(\d{{1,2}})()\s*{_MERIDIEM}(?![a-z])"),
    # \b after the digits keeps ordinals ("at 3rd") out
    re.compile(r"\bat\s+(\d{1,2})()()\b(?!\s*:)"),
]


def _to_24_hour(hour: int, meridiem: str | None) -> int:
    if meridiem == "pm" and hour < 12:
        return hour + 12
    if meridiem == "am" and hour == 12:
        return 0
    return hour


def match_time_of_day(text: str) -> TimeOfDay | None:
    """Find a clock time. 12pm is noon, 12am is midnight."""
    for pattern in _TIME_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue

        hour = int(match.group(1))
        minute = int(match.group(2) or 0)
        meridiem = (match.group(3) or "").replace(".", "") or None

        if meridiem and not 1 <= hour <= 12:
            return None
        hour = _to_24_hour(hour, meridiem)
        if hour > 23 or minute > 59:
            return None
        return TimeOfDay(hour=hour, minute=minute)

    return None


# =============================================================================
# Dates
# =============================================================================

_MONTH_NAMES = [
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
]

MONTHS: dict[str, int] = {name: i + 1 for i, name in enumerate(_MONTH_NAMES)}
MONTHS.update({name[:3]: i + 1 for i, name in enumerate(_MONTH_NAMES)})
MONTHS["sept"] = 9

_MONTH_ALT = "|".join(sorted(MONTHS, key=len, reverse=True))
_ORDINAL = r"(?:st|nd|rd|th)?"

# "9th February", "9 of feb"
_DAY_MONTH_RE = re.compile(rf"\b(\d{{1,2}}){_ORDINAL}\s+(?:of\s+)?({_MONTH_ALT})\b")
# "February 9th", "feb the 10" - but not "may 3pm" or "march 3:00"
_MONTH_DAY_RE = re.compile(
    rf"\b({_MONTH_ALT})\s+(?:the\s+)?(\d{{1,2}}){_ORDINAL}\b(?!\s*(?::|am\b|pm\b|a\.m\.|p\.m\.))"
)

WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

_WEEKDAY_RE = re.compile(rf"\b({'|'.join(WEEKDAYS)})\b")
_NEXT_RE = re.compile(r"\bnext\b")


def _calendar_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def match_explicit_date(text: str, today: date) -> DateMatch | None:
    """A day and month name in either order. Past dates roll to next year."""
    candidates: list[tuple[int, int]] = []
    for match in _DAY_MONTH_RE.finditer(text):
        candidates.append((int(match.group(1)), MONTHS[match.group(2)]))
    for match in _MONTH_DAY_RE.finditer(text):
        candidates.append((int(match.group(2)), MONTHS[match.group(1)]))

    for day_num, month in candidates:
        if not 1 <= day_num <= 31:
            continue
        target = _calendar_date(today.year, month, day_num)
        if target is None:
            continue
        if target < today:
            target = _calendar_date(today.year + 1, month, day_num)
            if target is None:
                continue
        return DateMatch(day=target, rule="explicit_date")

    return None


def match_relative_day(text: str, today: date) -> DateMatch | None:
    if "tomorrow" in text:
        return DateMatch(day=today + timedelta(days=1), rule="tomorrow")
    if "next week" in text:
        return DateMatch(day=today + timedelta(days=7), rule="next_week")
    return None


def match_weekday(text: str, today: date) -> DateMatch | None:
    """
    Next future occurrence of a named weekday, never today.

    "next" pushes a further week out, so on a Monday both "Tuesday" (+1) and
    "next Tuesday" (+8) are distinct, while on a Tuesday "Tuesday" is +7 and
    "next Tuesday" is +14.
    """
    match = _WEEKDAY_RE.search(text)
    if not match:
        return None

    days_until = WEEKDAYS.index(match.group(1)) - today.weekday()
    if days_until <= 0:
        days_until += 7
    if _NEXT_RE.search(text):
        days_until += 7

    return DateMatch(day=today + timedelta(days=days_until), rule="weekday")


DATE_MATCHERS: list[DateMatcher] = [
    match_explicit_date,
    match_relative_day,
    match_weekday,
]


def match_date(text: str, today: date) -> DateMatch | None:
    for matcher in DATE_MATCHERS:
        result = matcher(text, today)
        if result is not None:
            return result
    return None


# =============================================================================
# Composition
# =============================================================================


def compose(
    date_match: DateMatch | None,
    time_of_day: TimeOfDay | None,
    now: datetime,
    default_hour: int = DEFAULT_HOUR,
) -> datetime | None:
    """
    Merge partial matches into one datetime in now's zone.

    Without a day or a time there is nothing to go on and None is returned.
    Without a day, a time already past today means tomorrow.
    """
    if date_match is None and time_of_day is None:
        return None

    clock = time_of_day or TimeOfDay(hour=default_hour)
    day = date_match.day if date_match else now.date()
    result = datetime.combine(day, time(clock.hour, clock.minute), tzinfo=now.tzinfo)

    if date_match is None and result <= now:
        result += timedelta(days=1)

    return result


class TimeRequestParser:
    """Parses time phrases relative to 'now' in the organizer's zone."""

    def __init__(self, tz: tzinfo | None = None, default_hour: int = DEFAULT_HOUR):
        self.tz = tz or ZoneInfo(DEFAULT_TIMEZONE)
        self.default_hour = default_hour

    def _localize(self, now: datetime | None) -> datetime:
        if now is None:
            return datetime.now(self.tz)
        if now.tzinfo is None:
            return now.replace(tzinfo=self.tz)
        return now.astimezone(self.tz)

    def parse(self, text: str, now: datetime | None = None) -> datetime | None:
        """
        Resolve text to a datetime, or None when the user must be asked again.
        """
        if not isinstance(text, str) or not text.strip():
            return None

        now = self._localize(now)
        normalized = " ".join(text.lower().split())

        time_of_day = match_time_of_day(normalized)
        date_match = match_date(normalized, now.date())
        result = compose(date_match, time_of_day, now, self.default_hour)

        logger.debug(
            "time_request_parsed",
            rule=date_match.rule if date_match else None,
            has_time=time_of_day is not None,
            resolved=result.isoformat() if result else None,
        )
        return result


_default_parser = TimeRequestParser()


def parse_time_request(text: str, now: datetime | None = None) -> datetime | None:
    """Parse with the default organizer zone (Europe/London)."""
    return _default_parser.parse(text, now)
