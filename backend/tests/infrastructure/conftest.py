"""Infrastructure test fixtures — BridgeClient over httpx.MockTransport.

Invariants:
    - No real network: every request goes to a handler the test supplies
    - Backoff sleeps are recorded, never slept
    - Clock is deterministic (fixed epoch, advanced one second per read)

Design Decisions:
    - Factory fixture over a single client: tests vary config and handler per case
    - Handler receives the httpx.Request so tests assert exact wire headers and bytes
"""

import itertools

import httpx
import pytest

from midnight_bridge.core.retry_policy import RetryPolicy
from midnight_bridge.infrastructure.bridge_client import BridgeClient, BridgeClientConfig

EPOCH = 1_700_000_000


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def fake_sleep(sleeps):
    async def _sleep(seconds: float) -> None:
        sleeps.append(seconds)
    return _sleep


@pytest.fixture
def fake_clock():
    ticks = itertools.count(EPOCH)
    return lambda: float(next(ticks))


@pytest.fixture
async def make_client(fake_sleep, fake_clock):
    """Build a BridgeClient whose HTTP layer is the given handler."""
    clients = []

    def _make(handler, **config_overrides) -> BridgeClient:
        config_overrides.setdefault("base_uri", "http://bridge.test")
        config_overrides.setdefault("retry_policy", RetryPolicy())
        http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        clients.append(http)
        return BridgeClient(
            BridgeClientConfig(**config_overrides),
            http_client=http,
            clock=fake_clock,
            sleep=fake_sleep,
        )

    yield _make
    for http in clients:
        await http.aclose()
