"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - TxHash, Address wrap non-empty strings — never use bare str in domain logic
    - Every failure is classified by exactly one ErrorKind
    - Header names live here only; client and reference server share them

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders (ADR: error kinds cross the wire in logs)
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

TxHash = NewType("TxHash", str)
Address = NewType("Address", str)


# ─── Wire Constants ──────────────────────────────────────────────

HEADER_API_KEY = "X-API-Key"
HEADER_TIMESTAMP = "X-Timestamp"
HEADER_SIGNATURE = "X-Signature"

SENSITIVE_HEADERS = frozenset({
    HEADER_API_KEY.lower(), HEADER_SIGNATURE.lower(), "authorization",
})

DEFAULT_ACCEPTANCE_WINDOW_SECONDS = 300


# ─── Transient Failures ──────────────────────────────────────────

REQUEST_TIMEOUT_STATUS = 408


def is_transient_status(status_code: int) -> bool:
    """HTTP statuses worth retrying: 408 and every 5xx."""
    return status_code == REQUEST_TIMEOUT_STATUS or status_code >= 500


# ─── Enums ───────────────────────────────────────────────────────

class ErrorKind(str, Enum):
    """Failure taxonomy — transport, protocol, authentication and domain kinds."""
    CONNECTION_FAILED = "connection_failed"
    TIMEOUT = "timeout"
    INVALID_RESPONSE = "invalid_response"
    BRIDGE_ERROR = "bridge_error"
    MISSING_SIGNATURE = "missing_signature"
    INVALID_SIGNATURE = "invalid_signature"
    TIMESTAMP_EXPIRED = "timestamp_expired"
    CANCELLED = "cancelled"
    # Domain re-wraps: always carry the transport failure as cause
    CONTRACT_FAILED = "contract_failed"
    PROOF_FAILED = "proof_failed"
    HEALTH_CHECK_FAILED = "health_check_failed"


TRANSIENT_KINDS = frozenset({ErrorKind.CONNECTION_FAILED, ErrorKind.TIMEOUT})


class VerificationOutcome(str, Enum):
    """Result of checking a signed request on the receiving side."""
    VALID = "valid"
    MISSING_SIGNATURE = "missing_signature"
    TIMESTAMP_EXPIRED = "timestamp_expired"
    INVALID_SIGNATURE = "invalid_signature"


class SigningAlgorithm(str, Enum):
    """HMAC digests accepted for request signing (body hash uses the same digest)."""
    SHA256 = "sha256"
    SHA384 = "sha384"
    SHA512 = "sha512"
