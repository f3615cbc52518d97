"""Typed Results — Success | Failure values returned across the client boundary.

Invariants:
    - Result is the only object that crosses from the transport into application code
    - A Failure always carries exactly one ErrorKind and a FailureContext
    - Domain re-wraps (wrap()) keep the original Failure reachable via context.cause
    - user_message() is a single human-readable line, never a traceback

Design Decisions:
    - Values over exceptions: retry and mapping layers branch on data, not try/except
      (ADR: explicit result types at the transport seam)
    - FailureContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Callable, Generic, TypeVar, Union

from midnight_bridge.core.domain_types import (
    TRANSIENT_KINDS,
    ErrorKind,
    is_transient_status,
)
from midnight_bridge.core.errors import BridgeOperationError

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class FailureContext:
    """Where and how a failure happened."""
    endpoint: str | None = None
    status_code: int | None = None
    operation: str | None = None
    attempts: int | None = None
    cause: "Failure | None" = None
    debug_info: dict[str, Any] | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class Success(Generic[T]):
    """Successful outcome carrying the decoded payload."""
    payload: T

    @property
    def is_success(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.payload

    def map(self, fn: Callable[[T], U]) -> "Success[U]":
        return Success(fn(self.payload))


@dataclass(frozen=True)
class Failure:
    """Failed outcome — kind, message and context."""
    kind: ErrorKind
    message: str
    context: FailureContext = field(default_factory=FailureContext)

    @property
    def is_success(self) -> bool:
        return False

    @property
    def is_retryable(self) -> bool:
        """True for transient kinds: connection, timeout, 408 and 5xx."""
        if self.kind in TRANSIENT_KINDS:
            return True
        status = self.context.status_code
        return (
            self.kind == ErrorKind.BRIDGE_ERROR
            and status is not None
            and is_transient_status(status)
        )

    @property
    def root_cause(self) -> "Failure":
        failure = self
        while failure.context.cause is not None:
            failure = failure.context.cause
        return failure

    def unwrap(self):
        raise BridgeOperationError(self)

    def map(self, fn: Callable[[Any], Any]) -> "Failure":
        return self

    def wrap(self, kind: ErrorKind, operation: str) -> "Failure":
        """Re-wrap as a higher-level failure, preserving this one as cause."""
        return Failure(
            kind=kind,
            message=self.message,
            context=replace(
                self.context, operation=operation, cause=self,
                timestamp=datetime.now(timezone.utc),
            ),
        )

    def with_operation(self, operation: str) -> "Failure":
        return replace(self, context=replace(self.context, operation=operation))

    def user_message(self) -> str:
        """One-line summary, e.g. 'Failed to submit transaction: bridge unreachable'."""
        reason = _describe(self.root_cause)
        if self.context.operation:
            return f"Failed to {self.context.operation}: {reason}"
        return f"Bridge request failed: {reason}"


Result = Union[Success[T], Failure]


def _describe(failure: Failure) -> str:
    kind = failure.kind
    if kind == ErrorKind.CONNECTION_FAILED:
        return "bridge unreachable"
    if kind == ErrorKind.TIMEOUT:
        return "bridge timed out"
    if kind == ErrorKind.CANCELLED:
        return "request cancelled"
    if kind == ErrorKind.INVALID_RESPONSE:
        return f"invalid bridge response ({failure.message})"
    if kind == ErrorKind.BRIDGE_ERROR:
        return f"bridge returned HTTP {failure.context.status_code} ({failure.message})"
    if kind in (
        ErrorKind.MISSING_SIGNATURE,
        ErrorKind.INVALID_SIGNATURE,
        ErrorKind.TIMESTAMP_EXPIRED,
    ):
        return f"request rejected ({failure.message})"
    return failure.message
