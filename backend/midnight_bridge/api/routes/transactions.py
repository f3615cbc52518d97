"""Transactions — fake submission and status lookup.

Invariants:
    - POST /tx/submit with an empty or non-object body → 400 "Missing transaction data"
    - tx_hash is a deterministic hash of the submitted body
    - GET /tx/{hash}/status only matches lowercase hex hashes (others → 404)
    - Status is "confirmed" when the first hex digit is divisible by 3, else "pending"
"""

import re
from collections.abc import Callable

from fastapi import APIRouter, Depends, HTTPException, Request, status

from midnight_bridge.api.routes.route_helpers import fake_hash, read_json
from midnight_bridge.api.signature_guard import get_clock
from midnight_bridge.core.errors import MissingFieldError

router = APIRouter(prefix="/tx", tags=["transactions"])

_TX_HASH_RE = re.compile(r"^[a-f0-9]+$")


@router.post("/submit")
async def submit_transaction(
    request: Request, clock: Callable[[], float] = Depends(get_clock),
):
    data = await read_json(request)
    if not data:
        raise MissingFieldError("Missing transaction data")
    return {
        "tx_hash": fake_hash("tx", data),
        "status": "pending",
        "timestamp": int(clock()),
    }


@router.get("/{tx_hash}/status")
async def transaction_status(
    tx_hash: str, clock: Callable[[], float] = Depends(get_clock),
):
    if not _TX_HASH_RE.match(tx_hash):
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Endpoint not found")
    confirmed = int(tx_hash[0], 16) % 3 == 0
    return {
        "tx_hash": tx_hash,
        "status": "confirmed" if confirmed else "pending",
        "confirmations": 6 if confirmed else 0,
        "block_height": 12346 if confirmed else None,
        "timestamp": int(clock()),
    }
