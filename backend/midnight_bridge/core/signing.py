"""Signature Engine — canonical HMAC signing and verification of bridge requests.

Invariants:
    - All functions are PURE: output depends only on arguments (clock passed in as `now`)
    - string_to_sign = timestamp \\n METHOD \\n path_with_query \\n hex(hash(body))
    - Empty body hashes the empty byte string (never skipped)
    - Signature comparison is constant-time (hmac.compare_digest)
    - verify() checks in order: missing headers, timestamp window, signature

Design Decisions:
    - Return VerificationOutcome (not bool, not exceptions): the server picks the 401
      message per outcome, tests assert the exact rejection reason
    - Body hash uses the same digest as the HMAC: matches the bridge's configured algorithm
"""

import hashlib
import hmac
from dataclasses import dataclass

from midnight_bridge.core.domain_types import (
    DEFAULT_ACCEPTANCE_WINDOW_SECONDS,
    SigningAlgorithm,
    VerificationOutcome,
)
from midnight_bridge.core.errors import ConfigurationError


@dataclass(frozen=True)
class RequestEnvelope:
    """One signable request. Built per attempt; timestamp never reused."""
    method: str
    path_with_query: str
    body: bytes
    timestamp: int


@dataclass(frozen=True)
class SignedHeaders:
    """Authentication headers derived from a RequestEnvelope."""
    timestamp: str
    signature: str


def resolve_algorithm(algorithm: str | SigningAlgorithm) -> SigningAlgorithm:
    """Validate the configured digest name."""
    try:
        return SigningAlgorithm(algorithm.lower())
    except (AttributeError, ValueError):
        raise ConfigurationError(
            f"Unsupported signing algorithm: {algorithm!r}", "bridge_signing_algo",
        ) from None


def body_hash(body: bytes, algorithm: str = "sha256") -> str:
    return hashlib.new(resolve_algorithm(algorithm).value, body).hexdigest()


def build_string_to_sign(
    timestamp: int | str,
    method: str,
    path_with_query: str,
    body: bytes,
    algorithm: str = "sha256",
) -> str:
    return "\n".join([
        str(timestamp),
        method.upper(),
        path_with_query,
        body_hash(body, algorithm),
    ])


def sign(
    secret_key: str,
    method: str,
    path_with_query: str,
    body: bytes,
    timestamp: int | str,
    algorithm: str = "sha256",
) -> str:
    """Hex HMAC over the canonical string for this request."""
    digest = resolve_algorithm(algorithm).value
    string_to_sign = build_string_to_sign(
        timestamp, method, path_with_query, body, digest,
    )
    return hmac.new(
        secret_key.encode("utf-8"),
        string_to_sign.encode("utf-8"),
        digest,
    ).hexdigest()


def sign_envelope(
    secret_key: str, envelope: RequestEnvelope, algorithm: str = "sha256",
) -> SignedHeaders:
    signature = sign(
        secret_key, envelope.method, envelope.path_with_query,
        envelope.body, envelope.timestamp, algorithm,
    )
    return SignedHeaders(timestamp=str(envelope.timestamp), signature=signature)


def is_timestamp_fresh(
    received_timestamp: int, now: float,
    window_seconds: int = DEFAULT_ACCEPTANCE_WINDOW_SECONDS,
) -> bool:
    """Both stale and future-dated timestamps count as outside the window."""
    return abs(now - received_timestamp) <= window_seconds


def verify(
    secret_key: str,
    received_signature: str | None,
    method: str,
    path_with_query: str,
    body: bytes,
    received_timestamp: str | int | None,
    now: float,
    window_seconds: int = DEFAULT_ACCEPTANCE_WINDOW_SECONDS,
    algorithm: str = "sha256",
) -> VerificationOutcome:
    """Check a received signature. Missing → window → HMAC, first failure wins."""
    if not received_signature or received_timestamp in (None, ""):
        return VerificationOutcome.MISSING_SIGNATURE

    try:
        timestamp = int(received_timestamp)
    except (TypeError, ValueError):
        return VerificationOutcome.TIMESTAMP_EXPIRED
    if not is_timestamp_fresh(timestamp, now, window_seconds):
        return VerificationOutcome.TIMESTAMP_EXPIRED

    expected = sign(
        secret_key, method, path_with_query, body,
        str(received_timestamp), algorithm,
    )
    if not hmac.compare_digest(
        expected.encode("ascii"), received_signature.encode("utf-8"),
    ):
        return VerificationOutcome.INVALID_SIGNATURE
    return VerificationOutcome.VALID
