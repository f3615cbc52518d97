"""Health & Network — liveness and network metadata of the reference bridge.

Invariants:
    - GET /health always returns {status: "ok"} once the signature guard passes
    - GET /network/metadata returns a fixed fake testnet description
"""

from collections.abc import Callable

from fastapi import APIRouter, Depends

from midnight_bridge.api.signature_guard import get_clock

router = APIRouter(tags=["health"])

BRIDGE_VERSION = "1.0.0-fake"


@router.get("/health")
async def health(clock: Callable[[], float] = Depends(get_clock)):
    """Liveness probe."""
    return {
        "status": "ok",
        "message": "Bridge service is healthy",
        "timestamp": int(clock()),
        "version": BRIDGE_VERSION,
    }


@router.get("/network/metadata")
async def network_metadata():
    return {
        "network_id": "testnet-fake",
        "network_name": "Midnight Fake Testnet",
        "chain_id": "0x1234",
        "block_height": 12345,
        "block_time": 5,
        "protocol_version": "1.0.0",
        "min_gas_price": "1000000000",
        "peers": 42,
        "syncing": False,
    }
