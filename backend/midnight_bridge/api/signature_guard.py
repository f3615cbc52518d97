"""Signature Guard — FastAPI dependency that authenticates every inbound bridge request.

Invariants:
    - Signing disabled → guard is a no-op
    - Path verified is the raw request line (raw_path + '?' + raw query_string), never a
      decoded or re-encoded form
    - Body verified is the raw request body bytes
    - Rejections raise SignatureError subclasses → 401 via the registered error handler

Design Decisions:
    - Dependency over middleware: FastAPI caches request.body(), so routes can still read it
    - Clock is itself a dependency (get_clock): tests override it to simulate replays
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from fastapi import Depends, Request

from midnight_bridge.config import Settings
from midnight_bridge.core.canonical_path import path_from_raw
from midnight_bridge.core.domain_types import (
    DEFAULT_ACCEPTANCE_WINDOW_SECONDS,
    HEADER_SIGNATURE,
    HEADER_TIMESTAMP,
    VerificationOutcome,
)
from midnight_bridge.core.errors import (
    ConfigurationError,
    InvalidSignatureError,
    MissingSignatureError,
    SignatureError,
    TimestampExpiredError,
)
from midnight_bridge.core.signing import resolve_algorithm, verify

logger = logging.getLogger(__name__)

_REJECTIONS: dict[VerificationOutcome, type[SignatureError]] = {
    VerificationOutcome.MISSING_SIGNATURE: MissingSignatureError,
    VerificationOutcome.TIMESTAMP_EXPIRED: TimestampExpiredError,
    VerificationOutcome.INVALID_SIGNATURE: InvalidSignatureError,
}


@dataclass(frozen=True)
class GuardConfig:
    """Verification settings for one server instance."""
    signing_key: str | None = None
    algorithm: str = "sha256"
    window_seconds: int = DEFAULT_ACCEPTANCE_WINDOW_SECONDS

    def __post_init__(self):
        resolve_algorithm(self.algorithm)
        if self.window_seconds <= 0:
            raise ConfigurationError(
                "Signature window must be positive", "signature_window_seconds",
            )

    @property
    def enabled(self) -> bool:
        return bool(self.signing_key)

    @classmethod
    def from_settings(cls, settings: Settings) -> "GuardConfig":
        if settings.bridge_signing_enabled and not settings.bridge_signing_key:
            raise ConfigurationError(
                "Request signing is enabled but no signing key is configured",
                "bridge_signing_key",
            )
        return cls(
            signing_key=(
                settings.bridge_signing_key if settings.bridge_signing_enabled else None
            ),
            algorithm=settings.bridge_signing_algo.value,
            window_seconds=settings.signature_window_seconds,
        )


def get_clock() -> Callable[[], float]:
    return time.time


def signed_path(request: Request) -> str:
    """Path+query exactly as it arrived on the request line."""
    raw_path = request.scope.get("raw_path") or request.url.path.encode("utf-8")
    return path_from_raw(raw_path, request.scope.get("query_string", b""))


async def verify_request_signature(
    request: Request, clock: Callable[[], float] = Depends(get_clock),
) -> None:
    config: GuardConfig = request.app.state.guard_config
    if not config.enabled:
        return

    path = signed_path(request)
    outcome = verify(
        config.signing_key,
        request.headers.get(HEADER_SIGNATURE),
        request.method,
        path,
        await request.body(),
        request.headers.get(HEADER_TIMESTAMP),
        clock(),
        config.window_seconds,
        config.algorithm,
    )
    if outcome == VerificationOutcome.VALID:
        return

    logger.warning(
        f"Rejected bridge request: {outcome.value}",
        extra={"method": request.method, "path": path, "outcome": outcome.value},
    )
    raise _REJECTIONS[outcome]()
