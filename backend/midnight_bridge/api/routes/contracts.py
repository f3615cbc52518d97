"""Contracts & Proofs — fake contract call, deploy, join and proof generation.

Invariants:
    - Missing required fields → 400 with the bridge's original message
    - contract/call results keyed by entrypoint (get_balance, get_name, get_owner, is_paused)
    - Addresses, hashes and proofs derive only from the request body (deterministic)
"""

import base64
import hashlib
from collections.abc import Callable

from fastapi import APIRouter, Depends, Request

from midnight_bridge.api.routes.route_helpers import fake_hash, read_json, require
from midnight_bridge.api.signature_guard import get_clock

router = APIRouter(tags=["contracts"])

_CANNED_CALL_RESULTS = {
    "get_balance": {"balance": "1000000000000000000"},
    "get_name": {"name": "Fake Contract"},
    "get_owner": {"owner": "0x1234567890abcdef1234567890abcdef12345678"},
    "is_paused": {"paused": False},
}


@router.post("/contract/call")
async def call_contract(
    request: Request, clock: Callable[[], float] = Depends(get_clock),
):
    data = await read_json(request)
    require(
        data, "contract_address", "entrypoint",
        message="Missing contract_address or entrypoint",
    )
    entrypoint = data["entrypoint"]
    return {
        "success": True,
        "result": _CANNED_CALL_RESULTS.get(
            entrypoint, {"value": f"fake_result_{entrypoint}"},
        ),
        "gas_used": 21000,
        "timestamp": int(clock()),
    }


@router.post("/proof/generate")
async def generate_proof(
    request: Request, clock: Callable[[], float] = Depends(get_clock),
):
    data = await read_json(request)
    require(
        data, "contract_name", "entrypoint",
        message="Missing contract_name or entrypoint",
    )
    public_inputs = data.get("public_inputs") or {}
    digest = hashlib.sha256(
        fake_hash("proof", data["contract_name"], data["entrypoint"], public_inputs)
        .encode("ascii"),
    ).digest()
    return {
        "proof": base64.b64encode(digest).decode("ascii"),
        "public_inputs": public_inputs,
        "verification_key": base64.b64encode(
            f"fake_vk_{data['contract_name']}".encode("utf-8"),
        ).decode("ascii"),
        "generated_at": int(clock()),
    }


@router.post("/contract/deploy")
async def deploy_contract(
    request: Request, clock: Callable[[], float] = Depends(get_clock),
):
    data = await read_json(request)
    require(data, "contract_path", message="Missing contract_path")
    return {
        "contract_address": "0x" + fake_hash("contract", data["contract_path"])[:40],
        "tx_hash": fake_hash("deploy", data),
        "status": "pending",
        "constructor_args": data.get("constructor_args") or {},
        "timestamp": int(clock()),
    }


@router.post("/contract/join")
async def join_contract(
    request: Request, clock: Callable[[], float] = Depends(get_clock),
):
    data = await read_json(request)
    require(data, "contract_address", message="Missing contract_address")
    return {
        "success": True,
        "tx_hash": fake_hash("join", data),
        "contract_address": data["contract_address"],
        "participant_id": fake_hash("participant", data["contract_address"]),
        "timestamp": int(clock()),
    }
