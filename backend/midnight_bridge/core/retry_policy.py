"""Retry Policy — pure decision whether and when to reattempt a bridge request.

Invariants:
    - attempt is 0-indexed; attempt >= max_retries never retries
    - Retry on CONNECTION_FAILED, TIMEOUT, HTTP 408, HTTP >= 500
    - Never retry other 4xx (401 included) regardless of remaining budget
    - Never retry CANCELLED
    - delay(n) = base_delay_ms * backoff_multiplier ** n (no jitter)

Design Decisions:
    - Decision computed fresh per failed attempt: no counters live in the policy object
    - No jitter: the bridge is a single upstream per backend, and conformance tests
      assert exact 100/200/400ms delays
"""

from dataclasses import dataclass

from midnight_bridge.core.domain_types import is_transient_status
from midnight_bridge.core.response_mapper import BridgeResponse
from midnight_bridge.core.result import Failure


@dataclass(frozen=True)
class RetryDecision:
    should_retry: bool
    delay_ms: int = 0


@dataclass(frozen=True)
class RetryPolicy:
    """Immutable retry settings; decide() is a pure function of its inputs."""
    max_retries: int = 3
    base_delay_ms: int = 100
    backoff_multiplier: float = 2.0

    def __post_init__(self):
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.base_delay_ms < 0:
            raise ValueError("base_delay_ms must be >= 0")
        if self.backoff_multiplier < 1:
            raise ValueError("backoff_multiplier must be >= 1")

    def backoff_delay_ms(self, attempt: int) -> int:
        return int(self.base_delay_ms * (self.backoff_multiplier ** attempt))

    def decide(
        self, attempt: int, outcome: BridgeResponse | Failure,
    ) -> RetryDecision:
        if attempt >= self.max_retries or not is_transient(outcome):
            return RetryDecision(should_retry=False)
        return RetryDecision(
            should_retry=True, delay_ms=self.backoff_delay_ms(attempt),
        )


def is_transient(outcome: BridgeResponse | Failure) -> bool:
    """Classify one attempt's outcome as worth retrying."""
    if isinstance(outcome, Failure):
        return outcome.is_retryable
    return is_transient_status(outcome.status_code)
