"""Response Mapper — turns one HTTP round-trip into a typed Result.

Invariants:
    - status >= 400 → Failure(BRIDGE_ERROR) with status, endpoint, and the body's
      `error` or `message` field (else "Unknown error")
    - status < 400 with a non-JSON body → Failure(INVALID_RESPONSE)
    - status < 400 with an empty body → Success({})
    - status < 400 with JSON → Success(decoded)
    - Transaction hashes accepted as `tx_hash` or `txHash`

Design Decisions:
    - BridgeResponse keeps raw bytes: the mapper decides validity, not the transport
    - Error-status bodies that are not JSON still map to BRIDGE_ERROR, never INVALID_RESPONSE
      (ADR: callers must tell "bridge said no" apart from "bridge spoke garbage")
"""

import json
from dataclasses import dataclass, field
from typing import Any

from midnight_bridge.core.domain_types import ErrorKind, TxHash
from midnight_bridge.core.result import Failure, FailureContext, Result, Success

UNKNOWN_ERROR = "Unknown error"


@dataclass(frozen=True)
class BridgeResponse:
    """One HTTP round-trip as received."""
    status_code: int
    raw_body: bytes = b""
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def is_error(self) -> bool:
        return self.status_code >= 400

    def parsed_json(self) -> Any | None:
        """Decoded body, or None if empty or not JSON."""
        if not self.raw_body.strip():
            return None
        try:
            return json.loads(self.raw_body)
        except (ValueError, UnicodeDecodeError):
            return None


def map_response(response: BridgeResponse, endpoint: str) -> Result[Any]:
    """Classify a final HTTP response for the given endpoint."""
    if response.is_error:
        return Failure(
            kind=ErrorKind.BRIDGE_ERROR,
            message=extract_error_message(response.parsed_json()),
            context=FailureContext(
                endpoint=endpoint, status_code=response.status_code,
            ),
        )

    if not response.raw_body.strip():
        return Success({})

    try:
        data = json.loads(response.raw_body)
    except (ValueError, UnicodeDecodeError) as e:
        return Failure(
            kind=ErrorKind.INVALID_RESPONSE,
            message=f"Invalid JSON in response: {e}",
            context=FailureContext(
                endpoint=endpoint, status_code=response.status_code,
                debug_info={"body_preview": response.raw_body[:200].decode(
                    "utf-8", errors="replace",
                )},
            ),
        )
    return Success(data)


def extract_error_message(data: Any) -> str:
    if isinstance(data, dict):
        message = data.get("error") or data.get("message")
        if isinstance(message, str) and message:
            return message
        if isinstance(message, dict):
            nested = message.get("message")
            if isinstance(nested, str) and nested:
                return nested
    return UNKNOWN_ERROR


def extract_tx_hash(payload: Any, endpoint: str) -> Result[TxHash]:
    """Require a non-empty tx_hash/txHash field in a success payload."""
    value = None
    if isinstance(payload, dict):
        value = payload.get("tx_hash") or payload.get("txHash")
    if not isinstance(value, str) or not value:
        return Failure(
            kind=ErrorKind.INVALID_RESPONSE,
            message="Missing tx_hash in response",
            context=FailureContext(endpoint=endpoint, status_code=500),
        )
    return Success(TxHash(value))


def require_fields(
    payload: Any, endpoint: str, *fields: str,
) -> Failure | None:
    """Return a Failure naming the first missing field, or None."""
    if not isinstance(payload, dict):
        return Failure(
            kind=ErrorKind.INVALID_RESPONSE,
            message="Expected a JSON object in response",
            context=FailureContext(endpoint=endpoint),
        )
    for name in fields:
        if payload.get(name) in (None, ""):
            return Failure(
                kind=ErrorKind.INVALID_RESPONSE,
                message=f"Missing {name} in response",
                context=FailureContext(endpoint=endpoint, status_code=500),
            )
    return None
