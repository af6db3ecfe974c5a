"""
BullionTracker — Shared pytest Fixtures & Configuration

Provides common fixtures for all test modules:
- Controllable clock for cache expiry
- Mock async HTTP client (respx)
- Retailer HTML fixture loader
"""

from __future__ import annotations

from pathlib import Path
from typing import AsyncGenerator, Generator

import httpx
import pytest
import respx


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


class FakeClock:
    """Monotonic clock stand-in that only moves when told to."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    """Clock frozen at t=0."""
    return FakeClock()


# ---------------------------------------------------------------------------
# Mock Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def respx_router() -> Generator[respx.MockRouter, None, None]:
    """Active respx router; register routes on it with router.get(...)."""
    with respx.mock(assert_all_called=False) as router:
        yield router


@pytest.fixture
async def mock_async_http_client(
    respx_router: respx.MockRouter,
) -> AsyncGenerator[httpx.AsyncClient, None]:
    """
    Async HTTP client with respx interceptor.

    All HTTP requests are intercepted and must be explicitly mocked.
    Prevents accidental calls to live quote providers and retailers.
    """
    async with httpx.AsyncClient() as client:
        yield client


# ---------------------------------------------------------------------------
# Fixture Loaders
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def catalog_page_html() -> str:
    """Retailer catalog page with heading tiles and JSON-LD products."""
    fixture_path = Path(__file__).parent / "fixtures" / "catalog_page.html"
    return fixture_path.read_text(encoding="utf-8")
