"""API test fixtures — reference bridge apps behind httpx.ASGITransport.

Invariants:
    - Every app is built by create_app() with explicit Settings (env never consulted)
    - Server clock pinned to NOW through the get_clock dependency override
    - signed_headers() signs exactly the bytes the test sends
"""

import httpx
import pytest

from midnight_bridge.api.signature_guard import get_clock
from midnight_bridge.config import Settings
from midnight_bridge.core.signing import sign
from midnight_bridge.main import create_app

NOW = 1_700_000_000
SIGNING_KEY = "server-test-key"


def _signed_headers(
    method: str, path: str, body: bytes = b"", timestamp: int = NOW,
    key: str = SIGNING_KEY,
) -> dict[str, str]:
    return {
        "X-Timestamp": str(timestamp),
        "X-Signature": sign(key, method, path, body, timestamp),
        "Content-Type": "application/json",
    }


@pytest.fixture
def signed_headers():
    """Build X-Timestamp/X-Signature headers for (method, path, body)."""
    return _signed_headers


@pytest.fixture
def now():
    return NOW


def _app(signing: bool):
    app = create_app(Settings(
        bridge_signing_enabled=signing,
        bridge_signing_key=SIGNING_KEY if signing else None,
    ))
    app.dependency_overrides[get_clock] = lambda: (lambda: float(NOW))
    return app


@pytest.fixture
async def signed_client():
    """Client for a server that verifies signatures."""
    transport = httpx.ASGITransport(app=_app(signing=True))
    async with httpx.AsyncClient(
        transport=transport, base_url="http://testserver",
    ) as client:
        yield client


@pytest.fixture
async def open_client():
    """Client for a server with signing disabled."""
    transport = httpx.ASGITransport(app=_app(signing=False))
    async with httpx.AsyncClient(
        transport=transport, base_url="http://testserver",
    ) as client:
        yield client
