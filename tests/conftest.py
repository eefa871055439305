"""
tests/conftest.py

Shared pytest fixtures used by both unit and integration test suites.
All HTTP fixtures use respx.mock — no real network calls are made in any test.
"""

from __future__ import annotations

import pytest
import respx
import httpx

from config import Settings


# ---------------------------------------------------------------------------
# HTTP mock fixture — intercepts all httpx calls
# ---------------------------------------------------------------------------


@pytest.fixture()
def mock_http():
    """
    Yields a respx router that intercepts all httpx.AsyncClient calls.

    No real network traffic is allowed during tests. Use this fixture
    wherever a service or client would normally make an outbound request.
    """
    with respx.mock(assert_all_called=False) as router:
        yield router


# ---------------------------------------------------------------------------
# Shared httpx.AsyncClient fixture
# ---------------------------------------------------------------------------


@pytest.fixture()
async def http_client():
    """
    Yields a real httpx.AsyncClient instance for use in tests.

    Pair with the mock_http fixture so all requests are intercepted by respx.
    The client is closed after each test.
    """
    async with httpx.AsyncClient() as client:
        yield client


@pytest.fixture()
def settings():
    """Default timeout and concurrency limits."""
    return Settings()


# ---------------------------------------------------------------------------
# Environment isolation — Consensus.get() reads IP_CONSENSUS_* by default
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def clean_ip_consensus_env(monkeypatch):
    """
    Removes any IP_CONSENSUS_* variables inherited from the shell so every
    test starts from the default settings unless it sets them itself.
    """
    for name in (
        "IP_CONSENSUS_REQUEST_TIMEOUT",
        "IP_CONSENSUS_MAX_CONCURRENCY",
        "IP_CONSENSUS_CA_BUNDLE",
    ):
        monkeypatch.delenv(name, raising=False)
