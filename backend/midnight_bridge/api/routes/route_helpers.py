"""Route Helpers — body parsing and deterministic fake identifiers for canned routes.

Invariants:
    - read_json never raises: empty or malformed bodies read as {}
    - fake_hash is a pure function of its inputs (same request → same hash)
"""

import hashlib
import json
from typing import Any

from fastapi import Request

from midnight_bridge.core.errors import MissingFieldError

FAKE_WALLET_ADDRESS = "0xfake1234567890abcdef1234567890abcdef1234"


async def read_json(request: Request) -> dict[str, Any]:
    body = await request.body()
    if not body:
        return {}
    try:
        data = json.loads(body)
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def require(data: dict[str, Any], *fields: str, message: str) -> None:
    """Raise MissingFieldError (400) unless every field is present."""
    if any(data.get(name) is None for name in fields):
        raise MissingFieldError(message)


def fake_hash(*parts: Any) -> str:
    canonical = json.dumps(parts, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
