"""
Tool: Graph Client
Purpose: Authenticated Microsoft Graph calls for the organizer's calendar

Every call returns a dict shaped like {"success": True, "data": ...} or
{"success": False, "error": ..., "status": ...}. Transport failures and
timeouts become error results; missing credentials and a rejected token
exchange raise, because they are not calendar-provider outages.

Usage:
    from salesdesk.scheduling.graph_client import GraphClient

    graph = GraphClient(token_cache)
    result = await graph.calendar_view("organizer@example.com", start, end)

Dependencies:
    - httpx (pip install httpx)
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import httpx

from salesdesk.logging_config import get_logger
from salesdesk.scheduling.token_cache import TokenCache

logger = get_logger(__name__)


# Microsoft Graph API endpoints
GRAPH_API_BASE = "https://graph.microsoft.com/v1.0"

# Graph emits up to seven fractional digits; datetime accepts six
_FRACTION_RE = re.compile(r"(\.\d{6})\d+")


def to_graph_utc(value: datetime) -> str:
    """Render an aware datetime as a Graph UTC timestamp without offset."""
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S")


def parse_graph_datetime(data: dict[str, Any]) -> datetime:
    """
    Parse a Graph dateTimeTimeZone object into an aware datetime.

    Raises:
        ValueError: If dateTime is missing or malformed
    """
    if not isinstance(data, dict):
        raise ValueError(f"Expected a dateTimeTimeZone object, got {type(data).__name__}")
    raw = data.get("dateTime")
    if not raw or not isinstance(raw, str):
        raise ValueError("dateTime missing from Graph payload")

    value = datetime.fromisoformat(_FRACTION_RE.sub(r"\1", raw.rstrip("Z")))
    if value.tzinfo is not None:
        return value

    tz_name = data.get("timeZone") or "UTC"
    if tz_name.upper() in ("UTC", "ETC/UTC", "GMT"):
        return value.replace(tzinfo=timezone.utc)
    try:
        return value.replace(tzinfo=ZoneInfo(tz_name))
    except (ZoneInfoNotFoundError, ValueError):
        # Windows zone names are not in the IANA database; queries ask for UTC
        logger.warning("graph_timezone_unknown", timezone=tz_name)
        return value.replace(tzinfo=timezone.utc)


class GraphClient:
    """
    Thin client over the Microsoft Graph v1.0 REST API.

    Opens a short-lived httpx.AsyncClient per call unless a shared client
    is supplied. A transport can be injected for tests.
    """

    def __init__(
        self,
        token_cache: TokenCache,
        base_url: str = GRAPH_API_BASE,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.token_cache = token_cache
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client = client

    async def _get_headers(self) -> dict[str, str]:
        """Get authorization headers for API requests."""
        token = await self.token_cache.get_token()
        return {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
            # Return event times in UTC regardless of mailbox settings
            "Prefer": 'outlook.timezone="UTC"',
        }

    async def request(
        self,
        method: str,
        path: str,
        data: dict | None = None,
        params: dict | None = None,
    ) -> dict[str, Any]:
        """
        Make an authenticated API request.

        Args:
            method: HTTP method
            path: Path below the API base, or a full URL
            data: JSON request body
            params: Query parameters

        Returns:
            dict with response data or error

        Raises:
            ConfigurationError: If credentials are not configured
            AuthError: If a token cannot be obtained
        """
        url = path if path.startswith("http") else f"{self.base_url}{path}"
        headers = await self._get_headers()

        try:
            if self._client is not None:
                resp = await self._client.request(
                    method, url, headers=headers, json=data, params=params, timeout=self.timeout
                )
            else:
                async with httpx.AsyncClient(
                    timeout=self.timeout, transport=self._transport
                ) as client:
                    resp = await client.request(method, url, headers=headers, json=data, params=params)
        except httpx.TimeoutException as e:
            logger.warning("graph_request_timeout", method=method, path=path)
            return {"success": False, "error": f"Request timed out: {e!s}"}
        except httpx.HTTPError as e:
            logger.warning("graph_request_failed", method=method, path=path, error=str(e))
            return {"success": False, "error": f"Request failed: {e!s}"}

        return self._handle_response(resp)

    def _handle_response(self, resp: httpx.Response) -> dict[str, Any]:
        """Handle API response."""
        if resp.status_code == 204:
            return {"success": True, "data": {}}

        try:
            data = resp.json()
        except ValueError:
            data = {}

        if resp.status_code in (200, 201):
            return {"success": True, "data": data}

        if resp.status_code == 401:
            # Token revoked or expired early; exchange again next time
            self.token_cache.invalidate()
            error = "Authentication failed - token may be expired"
        elif resp.status_code == 403:
            error = "Permission denied - check Calendars.ReadWrite application permission"
        elif resp.status_code == 404:
            error = "Resource not found"
        else:
            error_obj = data.get("error") if isinstance(data, dict) else None
            message = error_obj.get("message") if isinstance(error_obj, dict) else None
            error = message or f"HTTP {resp.status_code}"

        return {"success": False, "error": error, "status": resp.status_code}

    # =========================================================================
    # Calendar Operations
    # =========================================================================

    async def get_schedule(
        self,
        organizer: str,
        start: datetime,
        end: datetime,
        interval_minutes: int,
    ) -> dict[str, Any]:
        """Free/busy view for the organizer over [start, end)."""
        data = {
            "schedules": [organizer],
            "startTime": {"dateTime": to_graph_utc(start), "timeZone": "UTC"},
            "endTime": {"dateTime": to_graph_utc(end), "timeZone": "UTC"},
            "availabilityViewInterval": interval_minutes,
        }
        return await self.request("POST", f"/users/{organizer}/calendar/getSchedule", data=data)

    async def calendar_view(
        self,
        organizer: str,
        start: datetime,
        end: datetime,
    ) -> dict[str, Any]:
        """Events overlapping [start, end), recurring series expanded."""
        params = {
            "startDateTime": to_graph_utc(start) + "Z",
            "endDateTime": to_graph_utc(end) + "Z",
            "$select": "start,end,isCancelled,showAs",
            "$orderby": "start/dateTime",
            "$top": 100,
        }
        return await self.request("GET", f"/users/{organizer}/calendar/calendarView", params=params)

    async def create_event(self, organizer: str, event: dict[str, Any]) -> dict[str, Any]:
        """Create an event on the organizer's calendar; Graph sends the invites."""
        return await self.request("POST", f"/users/{organizer}/events", data=event)
