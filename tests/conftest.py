"""
Global pytest fixtures for the URL shortener test suite.

Responsibilities:
    - Provide a fresh FastAPI TestClient via the app factory for integration tests
    - Provide isolated in-memory Storage and InMemoryTelemetry fixtures
    - Provide a UrlManager wired to both, with a deterministic clock

Using `create_app()` with an injected manager gives every test its own
in-memory state, so no test sees another test's records.
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from main import create_app
from url_shortener.manager.url_manager import UrlManager
from url_shortener.storage.storage import Storage
from url_shortener.telemetry.telemetry import InMemoryTelemetry


class StepClock:
    """Clock that advances one second per call, so creation order is unambiguous."""

    def __init__(self, start: datetime = datetime(2025, 1, 1, tzinfo=timezone.utc)):
        self.current = start

    def __call__(self) -> datetime:
        now = self.current
        self.current = self.current + timedelta(seconds=1)
        return now


@pytest.fixture
def storage() -> Storage:
    """Fresh in-memory record store."""
    return Storage()


@pytest.fixture
def telemetry() -> InMemoryTelemetry:
    """Fresh in-memory telemetry sink."""
    return InMemoryTelemetry()


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def manager(storage: Storage, telemetry: InMemoryTelemetry, clock: StepClock) -> UrlManager:
    """UrlManager wired to the storage, telemetry and clock fixtures."""
    return UrlManager(storage=storage, telemetry=telemetry, clock=clock)


@pytest.fixture
def client(manager: UrlManager) -> TestClient:
    """Fresh TestClient over a new app instance that shares the manager fixture."""
    return TestClient(create_app(manager=manager))
