"""Transport Pipeline — retry, signing, logging and HTTP layers, each wrapping the next.

Invariants:
    - Every layer exposes `async send(request) -> BridgeResponse | Failure`; none raise for
      network conditions (httpx errors become Failure values at the bottom layer)
    - Composition is fixed at construction: Retrying → Signing → Logging → Httpx
    - Signing runs once PER ATTEMPT: fresh timestamp and signature on every retry
    - Logged headers are redacted (X-Signature, X-API-Key)
    - Cancellation abandons the in-flight attempt or backoff sleep and yields
      Failure(CANCELLED); no further attempts start after it

Design Decisions:
    - Explicit decorator pipeline over httpx event hooks: each concern testable alone
      and the retry layer sees signing as an inner step (ADR: no hidden middleware chain)
    - Connection pool owned by the injected httpx.AsyncClient: the only shared mutable
      resource, already safe for concurrent use
    - CancelToken over task.cancel(): the caller gets a CANCELLED result value while native
      CancelledError keeps propagating untouched
"""

import asyncio
import contextlib
import logging
import time
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any, Protocol, Union

import httpx

from midnight_bridge.core.domain_types import (
    HEADER_SIGNATURE,
    HEADER_TIMESTAMP,
    ErrorKind,
)
from midnight_bridge.core.response_mapper import BridgeResponse
from midnight_bridge.core.result import Failure, FailureContext
from midnight_bridge.core.retry_policy import RetryPolicy
from midnight_bridge.core.signing import RequestEnvelope, sign_envelope
from midnight_bridge.infrastructure.observability import redact_headers

logger = logging.getLogger(__name__)

Outcome = Union[BridgeResponse, Failure]

_CANCELLED = object()


@dataclass(frozen=True)
class OutgoingRequest:
    """One logical request. Path is canonical and includes the query string."""
    method: str
    path: str
    body: bytes = b""
    headers: Mapping[str, str] = field(default_factory=dict)
    timeout: httpx.Timeout | None = None

    @property
    def endpoint(self) -> str:
        return self.path.split("?", 1)[0]

    def with_headers(self, extra: Mapping[str, str]) -> "OutgoingRequest":
        return replace(self, headers={**self.headers, **extra})


class Transport(Protocol):
    async def send(self, request: OutgoingRequest) -> Outcome: ...


class CancelToken:
    """Caller-held switch that aborts a logical call, including pending backoff."""

    def __init__(self):
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()


async def _until_cancelled(
    start: Callable[[], Awaitable[Any]], cancel: CancelToken | None,
) -> Any:
    """Await start() unless the token fires first; then return _CANCELLED."""
    if cancel is None:
        return await start()
    if cancel.cancelled:
        return _CANCELLED

    work = asyncio.ensure_future(start())
    waiter = asyncio.ensure_future(cancel.wait())
    try:
        done, _ = await asyncio.wait(
            {work, waiter}, return_when=asyncio.FIRST_COMPLETED,
        )
    except asyncio.CancelledError:
        work.cancel()
        waiter.cancel()
        raise
    waiter.cancel()
    if work in done:
        return work.result()
    work.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await work
    return _CANCELLED


# ─── Layers ──────────────────────────────────────────────────────

class HttpxTransport:
    """Bottom layer — one HTTP round-trip; httpx errors become Failure values."""

    def __init__(
        self, client: httpx.AsyncClient, origin: str,
        timeout: httpx.Timeout | None = None,
    ):
        self._client = client
        self._origin = origin.rstrip("/")
        self._timeout = timeout

    async def send(self, request: OutgoingRequest) -> Outcome:
        timeout = request.timeout or self._timeout
        try:
            response = await self._client.request(
                request.method,
                self._origin + request.path,
                content=request.body or None,
                headers=dict(request.headers),
                timeout=timeout if timeout is not None else httpx.USE_CLIENT_DEFAULT,
            )
        except httpx.TimeoutException as e:
            return Failure(
                kind=ErrorKind.TIMEOUT,
                message=f"Bridge request to {request.endpoint} timed out: {e!r}",
                context=FailureContext(endpoint=request.endpoint),
            )
        except httpx.TransportError as e:
            return Failure(
                kind=ErrorKind.CONNECTION_FAILED,
                message=f"Failed to connect to bridge at {self._origin}: {e!r}",
                context=FailureContext(endpoint=request.endpoint),
            )
        return BridgeResponse(
            status_code=response.status_code,
            raw_body=response.content,
            headers=dict(response.headers),
        )


class LoggingTransport:
    """Logs every attempt: request at DEBUG, connection failures at ERROR."""

    def __init__(self, inner: Transport):
        self._inner = inner

    async def send(self, request: OutgoingRequest) -> Outcome:
        logger.debug(
            "Bridge request",
            extra={
                "method": request.method,
                "path": request.path,
                "headers": redact_headers(request.headers),
            },
        )
        outcome = await self._inner.send(request)
        if isinstance(outcome, Failure):
            logger.error(
                f"Bridge connection failed: {outcome.message}",
                extra={
                    "endpoint": request.endpoint,
                    "error_kind": outcome.kind.value,
                },
            )
        else:
            logger.debug(
                "Bridge response",
                extra={
                    "method": request.method,
                    "path": request.path,
                    "status_code": outcome.status_code,
                },
            )
        return outcome


class SigningTransport:
    """Stamps X-Timestamp / X-Signature computed at send time."""

    def __init__(
        self,
        inner: Transport,
        secret_key: str,
        algorithm: str = "sha256",
        clock: Callable[[], float] = time.time,
    ):
        self._inner = inner
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._clock = clock

    async def send(self, request: OutgoingRequest) -> Outcome:
        envelope = RequestEnvelope(
            method=request.method.upper(),
            path_with_query=request.path,
            body=request.body,
            timestamp=int(self._clock()),
        )
        signed = sign_envelope(self._secret_key, envelope, self._algorithm)
        return await self._inner.send(request.with_headers({
            HEADER_TIMESTAMP: signed.timestamp,
            HEADER_SIGNATURE: signed.signature,
        }))


class RetryingTransport:
    """Top layer — reattempts transient outcomes with exponential backoff."""

    def __init__(
        self,
        inner: Transport,
        policy: RetryPolicy,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._inner = inner
        self._policy = policy
        self._sleep = sleep

    async def send(
        self, request: OutgoingRequest, cancel: CancelToken | None = None,
    ) -> Outcome:
        attempt = 0
        while True:
            outcome = await _until_cancelled(
                lambda: self._inner.send(request), cancel,
            )
            if outcome is _CANCELLED:
                return _cancelled(request, attempt)

            decision = self._policy.decide(attempt, outcome)
            if not decision.should_retry:
                return _with_attempts(outcome, attempt + 1)

            logger.warning(
                f"Transient bridge failure, retry after {decision.delay_ms}ms "
                f"(attempt {attempt + 1})",
                extra={
                    "endpoint": request.endpoint,
                    "attempt": attempt + 1,
                    "delay_ms": decision.delay_ms,
                    "outcome": _describe_outcome(outcome),
                },
            )
            slept = await _until_cancelled(
                lambda: self._sleep(decision.delay_ms / 1000), cancel,
            )
            if slept is _CANCELLED:
                return _cancelled(request, attempt + 1)
            attempt += 1


def _cancelled(request: OutgoingRequest, attempts: int) -> Failure:
    logger.info(
        "Bridge request cancelled",
        extra={"endpoint": request.endpoint, "attempts": attempts},
    )
    return Failure(
        kind=ErrorKind.CANCELLED,
        message=f"Request to {request.endpoint} was cancelled",
        context=FailureContext(endpoint=request.endpoint, attempts=attempts),
    )


def _with_attempts(outcome: Outcome, attempts: int) -> Outcome:
    if isinstance(outcome, Failure):
        return replace(outcome, context=replace(outcome.context, attempts=attempts))
    return outcome


def _describe_outcome(outcome: Outcome) -> str:
    if isinstance(outcome, Failure):
        return outcome.kind.value
    return f"http_{outcome.status_code}"


def build_pipeline(
    client: httpx.AsyncClient,
    origin: str,
    policy: RetryPolicy,
    *,
    timeout: httpx.Timeout | None = None,
    signing_key: str | None = None,
    signing_algorithm: str = "sha256",
    clock: Callable[[], float] = time.time,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> RetryingTransport:
    """Compose Retrying → Signing (optional) → Logging → Httpx."""
    inner: Transport = LoggingTransport(HttpxTransport(client, origin, timeout))
    if signing_key:
        inner = SigningTransport(inner, signing_key, signing_algorithm, clock)
    return RetryingTransport(inner, policy, sleep)
