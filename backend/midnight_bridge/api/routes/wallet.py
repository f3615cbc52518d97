"""Wallet — fake address, balance and transfer endpoints."""

import base64
from collections.abc import Callable

from fastapi import APIRouter, Depends, Query, Request

from midnight_bridge.api.routes.route_helpers import (
    FAKE_WALLET_ADDRESS,
    fake_hash,
    read_json,
    require,
)
from midnight_bridge.api.signature_guard import get_clock

router = APIRouter(prefix="/wallet", tags=["wallet"])


@router.get("/address")
async def wallet_address(clock: Callable[[], float] = Depends(get_clock)):
    return {
        "address": FAKE_WALLET_ADDRESS,
        "public_key": base64.b64encode(b"fake_public_key_data").decode("ascii"),
        "timestamp": int(clock()),
    }


@router.get("/balance")
async def wallet_balance(
    address: str | None = Query(None),
    clock: Callable[[], float] = Depends(get_clock),
):
    return {
        "address": address or FAKE_WALLET_ADDRESS,
        "balance": "5000000000000000000",
        "balance_formatted": "5.0",
        "unit": "DUST",
        "timestamp": int(clock()),
    }


@router.post("/transfer")
async def wallet_transfer(
    request: Request, clock: Callable[[], float] = Depends(get_clock),
):
    data = await read_json(request)
    require(data, "to_address", "amount", message="Missing to_address or amount")
    return {
        "tx_hash": fake_hash("transfer", data),
        "status": "pending",
        "from_address": FAKE_WALLET_ADDRESS,
        "to_address": data["to_address"],
        "amount": data["amount"],
        "timestamp": int(clock()),
    }
