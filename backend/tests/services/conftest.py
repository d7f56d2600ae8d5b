"""Service test fixtures — fake ledger collaborators + FastAPI test client.

Invariants:
    - No test reaches a real mirror node or relay
    - Clocks are controllable so cooldown and expiry are deterministic
    - get_canvas_service dependency overridden to use the fixture service

Design Decisions:
    - ASGITransport does not run the lifespan, so app.state is never touched
    - Wall clock pinned at 1e9 s: ledger keys in tests sit below or above it on purpose
"""

import pytest
from httpx import ASGITransport, AsyncClient

from pixel_canvas.api.dependencies import get_canvas_service
from pixel_canvas.main import app
from pixel_canvas.services.canvas_sync import CanvasSyncService

from tests.services.ledger_fakes import FakeClock, FakeFetcher, FakeSubmitter


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def submitter():
    return FakeSubmitter()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def service(fetcher, submitter, clock):
    return CanvasSyncService(
        fetcher,
        submitter,
        canvas_account_id="0.0.12345",
        cooldown_seconds=2.0,
        fetch_timeout_seconds=0.5,
        pending_ttl_seconds=60.0,
        monotonic=clock,
        wall_clock_ns=lambda: 1_000_000_000_000_000_000,
    )


@pytest.fixture
async def client(service):
    """FastAPI test client with the canvas service dependency overridden."""
    app.dependency_overrides[get_canvas_service] = lambda: service
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c
    app.dependency_overrides.clear()
