"""Signed Round Trip — BridgeClient against the reference server, in process.

Tests:
    - Signed POST /tx/submit → Success with the server's tx_hash
    - Replay of a request 10 minutes later → BRIDGE_ERROR 401 "Request timestamp expired",
      one attempt only, never a connection failure
    - Query strings (including percent-encoded values) verify end to end
    - A signature computed over the path without its query string is rejected
    - Unsigned or wrongly keyed clients are rejected with the bridge's messages
    - Every typed operation decodes the server's canned payloads
"""

import httpx
import pytest

from midnight_bridge.api.signature_guard import get_clock
from midnight_bridge.config import Settings
from midnight_bridge.core.domain_types import ErrorKind
from midnight_bridge.core.result import Failure, Success
from midnight_bridge.core.signing import sign
from midnight_bridge.infrastructure.bridge_client import BridgeClient, BridgeClientConfig
from midnight_bridge.main import create_app

NOW = 1_700_000_000
KEY = "shared-bridge-secret"


@pytest.fixture
def server():
    app = create_app(Settings(bridge_signing_enabled=True, bridge_signing_key=KEY))
    app.state.now = NOW
    app.dependency_overrides[get_clock] = lambda: (lambda: float(app.state.now))
    return app


@pytest.fixture
def sent():
    return []


@pytest.fixture
async def make_bridge(server, sent):
    """BridgeClient wired to the in-process server; records every wire request."""
    https = []

    async def record(request: httpx.Request) -> None:
        sent.append(request)

    def _make(**overrides) -> BridgeClient:
        overrides.setdefault("signing_enabled", True)
        overrides.setdefault("signing_key", KEY)
        http = httpx.AsyncClient(
            transport=httpx.ASGITransport(app=server),
            event_hooks={"request": [record]},
        )
        https.append(http)
        return BridgeClient(
            BridgeClientConfig(base_uri="http://testserver", **overrides),
            http_client=http,
            clock=lambda: float(NOW),
        )

    yield _make
    for http in https:
        await http.aclose()


# ─── Scenarios ──────────────────────────────────────────────────

async def test_signed_submit_returns_tx_hash(make_bridge):
    bridge = make_bridge()

    result = await bridge.submit_transaction({"from": "0x1", "to": "0x2", "amount": "10"})

    assert isinstance(result, Success)
    assert len(result.payload.tx_hash) == 64
    assert result.payload.status == "pending"


async def test_replay_after_ten_minutes_is_expired(make_bridge, server, sent):
    bridge = make_bridge()
    server.state.now = NOW + 600

    result = await bridge.submit_transaction({"from": "0x1", "to": "0x2", "amount": "10"})

    assert isinstance(result, Failure)
    assert result.kind == ErrorKind.BRIDGE_ERROR
    assert result.kind != ErrorKind.CONNECTION_FAILED
    assert result.context.status_code == 401
    assert result.message == "Request timestamp expired"
    assert result.context.attempts == 1
    assert len(sent) == 1


async def test_wallet_balance_with_query_verifies(make_bridge, sent):
    bridge = make_bridge()

    result = await bridge.get_wallet_balance("0xAAA")

    assert result.payload.address == "0xAAA"
    assert result.payload.balance == "5000000000000000000"
    assert sent[0].url.raw_path == b"/wallet/balance?address=0xAAA"


async def test_percent_encoded_query_verifies(make_bridge):
    bridge = make_bridge()

    result = await bridge.get_wallet_balance("0x+AAA béta")

    assert isinstance(result, Success)
    assert result.payload.address == "0x+AAA béta"


async def test_signature_without_query_fails(server):
    path = "/wallet/balance?address=0xAAA"
    headers = {
        "X-Timestamp": str(NOW),
        "X-Signature": sign(KEY, "GET", "/wallet/balance", b"", NOW),
    }
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=server), base_url="http://testserver",
    ) as http:
        response = await http.get(path, headers=headers)

    assert response.status_code == 401
    assert response.json()["error"] == "Invalid signature"


async def test_unsigned_client_is_rejected(make_bridge):
    bridge = make_bridge(signing_enabled=False, signing_key=None)

    result = await bridge.get_health()

    assert result.kind == ErrorKind.HEALTH_CHECK_FAILED
    assert result.root_cause.message == "Missing signature headers"
    assert result.user_message() == (
        "Failed to check bridge health: "
        "bridge returned HTTP 401 (Missing signature headers)"
    )


async def test_wrong_key_is_rejected(make_bridge):
    bridge = make_bridge(signing_key="not-the-shared-secret")

    result = await bridge.get_network_metadata()

    assert result.context.status_code == 401
    assert result.message == "Invalid signature"


# ─── Every operation ────────────────────────────────────────────

async def test_health_and_network(make_bridge):
    bridge = make_bridge(api_key="client-key")

    assert await bridge.health_check() is True
    meta = (await bridge.get_network_metadata()).unwrap()
    assert meta.network_name == "Midnight Fake Testnet"
    assert meta.chain_id == "0x1234"
    assert meta.model_extra["peers"] == 42


async def test_submit_then_status(make_bridge):
    bridge = make_bridge()

    receipt = (await bridge.submit_transaction({"nonce": 1})).unwrap()
    status = (await bridge.get_transaction_status(receipt.tx_hash)).unwrap()

    assert status.tx_hash == receipt.tx_hash
    assert status.is_confirmed == (int(receipt.tx_hash[0], 16) % 3 == 0)


async def test_contract_operations(make_bridge):
    bridge = make_bridge()

    call = (await bridge.call_contract("0xabc", "get_name")).unwrap()
    assert call.result == {"name": "Fake Contract"}
    assert call.gas_used == 21000

    deployment = (await bridge.deploy_contract("contracts/counter.compact", {"n": 1})).unwrap()
    assert deployment.contract_address.startswith("0x")
    assert deployment.status == "pending"

    joined = (await bridge.join_contract(deployment.contract_address)).unwrap()
    assert joined.contract_address == deployment.contract_address
    assert joined.participant_id


async def test_generic_post_surfaces_bridge_message(make_bridge):
    bridge = make_bridge()

    result = await bridge.post("/contract/call", {"contract_address": "0xabc"})
    assert result.message == "Missing contract_address or entrypoint"
    assert result.context.status_code == 400


async def test_proof_generation(make_bridge):
    bridge = make_bridge()

    proof = (await bridge.generate_proof("counter", "increment", {"x": 1})).unwrap()

    assert proof.public_inputs == {"x": 1}
    assert len(bytes.fromhex(proof.as_hex())) == 32


async def test_wallet_operations(make_bridge):
    bridge = make_bridge()

    address = (await bridge.get_wallet_address()).unwrap()
    assert address.address == "0xfake1234567890abcdef1234567890abcdef1234"

    transfer = (await bridge.wallet_transfer("0x2", "10")).unwrap()
    assert transfer.to_address == "0x2"
    assert transfer.amount == "10"
