"""
Integration test fixtures for Salesdesk.

Provides fixtures specific to integration testing:
- FastAPI test client with the scheduling service swapped for one
  talking to the fake Graph
"""

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from salesdesk.scheduling.routes import get_service
from salesdesk.server import create_app


# ─────────────────────────────────────────────────────────────────────────────
# API Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def app(service):
    """Application whose routes use the fake-backed service."""
    application = create_app()
    application.dependency_overrides[get_service] = lambda: service
    return application


@pytest.fixture
def test_client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as client:
        yield client
