"""Shared test fixtures for Salesdesk tests.

This module provides common fixtures used across all test modules:
- A fake Microsoft Graph (token endpoint included) behind httpx.MockTransport
- Scheduling config and client credentials for a test organizer
- A fully wired SchedulingService talking to the fake

Usage:
    async def test_something(service, fake_graph):
        fake_graph.add_busy(start, end)
        result = await service.check_availability(start)
"""

import json
import random
from datetime import datetime, timezone
from pathlib import Path
from zoneinfo import ZoneInfo

import httpx
import pytest

from salesdesk.scheduling.config_models import MicrosoftCredentials, SchedulingConfig
from salesdesk.scheduling.graph_client import GraphClient
from salesdesk.scheduling.service import SchedulingService
from salesdesk.scheduling.token_cache import TokenCache


# ─────────────────────────────────────────────────────────────────────────────
# Constants
# ─────────────────────────────────────────────────────────────────────────────

PROJECT_ROOT = Path(__file__).parent.parent
LONDON = ZoneInfo("Europe/London")
ORGANIZER = "sales@bsmart.example"


# ─────────────────────────────────────────────────────────────────────────────
# Fake Microsoft Graph
# ─────────────────────────────────────────────────────────────────────────────


def _utc(raw: str) -> datetime:
    return datetime.fromisoformat(raw.rstrip("Z")).replace(tzinfo=timezone.utc)


def _graph_time(value: datetime) -> dict:
    # Graph pads fractions to seven digits
    return {
        "dateTime": value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.0000000"),
        "timeZone": "UTC",
    }


class FakeGraph:
    """In-memory organizer calendar answering token, getSchedule, calendarView and events."""

    def __init__(self):
        self.busy: list[tuple[datetime, datetime, bool]] = []
        self.requests: list[httpx.Request] = []
        self.created_events: list[dict] = []
        self.token_calls = 0
        self.token_status = 200
        self.schedule_status = 200
        self.schedule_error = False
        self.calendar_view_status = 200
        self.calendar_view_body = None
        self.event_status = 201
        self.event_body = None
        self.include_join_url = True
        self.graph_error: Exception | None = None

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def add_busy(self, start: datetime, end: datetime, cancelled: bool = False) -> None:
        self.busy.append((start, end, cancelled))

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]

    def graph_paths(self) -> list[str]:
        return [p for p in self.paths() if not p.endswith("/oauth2/v2.0/token")]

    def _overlapping(self, start: datetime, end: datetime):
        return [(s, e, c) for s, e, c in self.busy if s < end and e > start]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path.endswith("/oauth2/v2.0/token"):
            self.token_calls += 1
            if self.token_status != 200:
                return httpx.Response(self.token_status, json={"error": "invalid_client"})
            return httpx.Response(
                200,
                json={
                    "access_token": f"token-{self.token_calls}",
                    "expires_in": 3600,
                    "token_type": "Bearer",
                },
            )

        if self.graph_error is not None:
            raise self.graph_error

        if path.endswith("/calendar/getSchedule"):
            if self.schedule_status != 200:
                return httpx.Response(
                    self.schedule_status,
                    json={"error": {"code": "ErrorInternalServerError", "message": "Schedule unavailable"}},
                )
            body = json.loads(request.content)
            if self.schedule_error:
                return httpx.Response(
                    200,
                    json={"value": [{
                        "scheduleId": body["schedules"][0],
                        "error": {"message": "Mailbox not found", "responseCode": "ErrorMailRecipientNotFound"},
                    }]},
                )
            start = _utc(body["startTime"]["dateTime"])
            end = _utc(body["endTime"]["dateTime"])
            items = [
                {"status": "busy", "start": _graph_time(s), "end": _graph_time(e)}
                for s, e, cancelled in self._overlapping(start, end)
                if not cancelled
            ]
            return httpx.Response(
                200,
                json={"value": [{
                    "scheduleId": body["schedules"][0],
                    "availabilityView": "2" if items else "0",
                    "scheduleItems": items,
                }]},
            )

        if path.endswith("/calendar/calendarView"):
            if self.calendar_view_status != 200:
                return httpx.Response(
                    self.calendar_view_status,
                    json={"error": {"code": "ErrorInternalServerError", "message": "Calendar unavailable"}},
                )
            if self.calendar_view_body is not None:
                return httpx.Response(200, json=self.calendar_view_body)
            start = _utc(request.url.params["startDateTime"])
            end = _utc(request.url.params["endDateTime"])
            events = [
                {"start": _graph_time(s), "end": _graph_time(e), "isCancelled": c, "showAs": "busy"}
                for s, e, c in self._overlapping(start, end)
            ]
            return httpx.Response(200, json={"value": events})

        if path.endswith("/events") and request.method == "POST":
            payload = json.loads(request.content)
            self.created_events.append(payload)
            if self.event_status not in (200, 201):
                return httpx.Response(
                    self.event_status,
                    json={"error": {"code": "ErrorAccessDenied", "message": "Access is denied."}},
                )
            if self.event_body is not None:
                return httpx.Response(201, json=self.event_body)
            event_id = f"evt-{len(self.created_events)}"
            event = {
                "id": event_id,
                "subject": payload["subject"],
                "webLink": f"https://outlook.office365.com/owa/?itemid={event_id}",
            }
            if payload.get("isOnlineMeeting") and self.include_join_url:
                event["onlineMeeting"] = {
                    "joinUrl": f"https://teams.microsoft.com/l/meetup-join/{event_id}"
                }
            return httpx.Response(201, json=event)

        return httpx.Response(404, json={"error": {"code": "NotFound", "message": "Not found"}})


# ─────────────────────────────────────────────────────────────────────────────
# Scheduling Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def london() -> ZoneInfo:
    return LONDON


@pytest.fixture
def organizer() -> str:
    return ORGANIZER


@pytest.fixture
def now() -> datetime:
    """Monday 19 October 2026, 11:00 in London (BST)."""
    return datetime(2026, 10, 19, 11, 0, tzinfo=LONDON)


@pytest.fixture
def scheduling_config() -> SchedulingConfig:
    return SchedulingConfig(organizer_email=ORGANIZER)


@pytest.fixture
def credentials() -> MicrosoftCredentials:
    return MicrosoftCredentials(
        tenant_id="tenant-123",
        client_id="client-abc",
        client_secret="s3cret",
    )


@pytest.fixture
def fake_graph() -> FakeGraph:
    return FakeGraph()


@pytest.fixture
def token_cache(credentials, fake_graph) -> TokenCache:
    return TokenCache(credentials, transport=fake_graph.transport)


@pytest.fixture
def graph(token_cache, fake_graph) -> GraphClient:
    return GraphClient(token_cache, transport=fake_graph.transport)


@pytest.fixture
def service(scheduling_config, credentials, fake_graph) -> SchedulingService:
    """SchedulingService wired to the fake Graph with a seeded phrase picker."""
    return SchedulingService(
        config=scheduling_config,
        credentials=credentials,
        transport=fake_graph.transport,
        rng=random.Random(7),
    )
