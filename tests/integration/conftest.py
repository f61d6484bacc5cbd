"""Pytest fixtures for integration tests.

The FastAPI app is exercised in-process through ``httpx.ASGITransport``.
Each test gets a fresh BallotStore on a FakeClock, injected by overriding the
``get_store`` dependency, so deadlines can be crossed without sleeping.
"""

from typing import AsyncGenerator, Callable, Dict

import httpx
import pytest

from ballot_service.ballot_api.config import settings
from ballot_service.ballot_api.main import app, get_store, limiter
from ballot_service.ballot_api.store import BallotStore
from ballot_service.client import BallotClient
from ballot_service.shared import FakeClock

BASE_URL = "http://testserver"

# Hardhat development accounts
OWNER = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
VOTER1 = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
VOTER2 = "0x3C44CdDdB6a900fa2b585dd299e03d12FA4293BC"

CANDIDATE_NAMES = ["Alice", "Bob", "Charlie"]
VOTING_DURATION = 30  # minutes


@pytest.fixture
def api_prefix() -> str:
    """Versioned route prefix, e.g. /api/v1."""
    return settings.api_prefix


@pytest.fixture
def clock() -> FakeClock:
    """Controllable clock shared by the store and the test."""
    return FakeClock(start=1_700_000_000)


@pytest.fixture
def store(clock: FakeClock) -> BallotStore:
    """Empty store (no ballot deployed)."""
    return BallotStore(clock=clock)


@pytest.fixture
def deployed_store(store: BallotStore) -> BallotStore:
    """Store with the Alice/Bob/Charlie ballot deployed by OWNER for 30 minutes."""
    store.deploy(OWNER, CANDIDATE_NAMES, VOTING_DURATION)
    return store


@pytest.fixture
def transport(store: BallotStore) -> httpx.ASGITransport:
    """ASGI transport bound to the app, with the store dependency overridden."""
    app.dependency_overrides[get_store] = lambda: store
    limiter.reset()
    yield httpx.ASGITransport(app=app)
    app.dependency_overrides.clear()


@pytest.fixture
async def api_client(transport: httpx.ASGITransport) -> AsyncGenerator[httpx.AsyncClient, None]:
    """HTTP client for making API requests."""
    async with httpx.AsyncClient(transport=transport, base_url=BASE_URL, timeout=10.0) as client:
        yield client


@pytest.fixture
def as_caller() -> Callable[[str], Dict[str, str]]:
    """Helper fixture building the caller identity header."""
    def _headers(address: str) -> Dict[str, str]:
        return {settings.CALLER_HEADER: address}

    return _headers


@pytest.fixture
def ballot_client(transport: httpx.ASGITransport) -> Callable[..., BallotClient]:
    """Factory for BallotClient instances talking to the in-process app."""
    def _make(caller: str = None) -> BallotClient:
        return BallotClient(
            BASE_URL,
            caller=caller,
            api_version=settings.API_VERSION,
            transport=transport,
            caller_header=settings.CALLER_HEADER
        )

    return _make

