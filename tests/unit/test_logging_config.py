"""Tests for salesdesk/logging_config.py"""

import logging

import structlog

from salesdesk.logging_config import (
    bind_scheduling_context,
    clear_scheduling_context,
    redact_calendar_fields,
    setup_logging,
)


class TestRedaction:
    def test_calendar_contents_masked(self):
        event = {
            "event": "meeting_created",
            "subject": "Contract renewal with Acme",
            "attendees": ["ceo@acme.example"],
            "event_id": "evt-1",
        }

        result = redact_calendar_fields(None, "info", event)

        assert result["subject"] == "[private]"
        assert result["attendees"] == "[private]"
        assert result["event_id"] == "evt-1"


class TestContext:
    def test_bind_returns_request_id(self):
        try:
            request_id = bind_scheduling_context(organizer="sales@bsmart.example")

            context = structlog.contextvars.get_contextvars()
            assert context["request_id"] == request_id
            assert len(request_id) == 12
            assert context["organizer"] == "sales@bsmart.example"
        finally:
            clear_scheduling_context()

        assert structlog.contextvars.get_contextvars() == {}

    def test_explicit_request_id_kept(self):
        try:
            assert bind_scheduling_context(request_id="abc") == "abc"
        finally:
            clear_scheduling_context()


class TestSetup:
    def test_level_from_env(self, monkeypatch):
        monkeypatch.setenv("SALESDESK_LOG_LEVEL", "WARNING")

        setup_logging()

        assert logging.getLogger().level == logging.WARNING
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_httpx_kept_at_warning_when_debugging(self):
        setup_logging(level="DEBUG")

        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.WARNING
