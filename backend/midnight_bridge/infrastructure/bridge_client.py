"""Bridge Client — one async method per bridge capability over the signed transport.

Invariants:
    - Every public method returns a Result (Success | Failure); network conditions never raise
    - Configuration is immutable after construction (BridgeClientConfig is frozen)
    - Request bodies serialized as canonical JSON: sorted keys, compact separators, UTF-8
    - X-API-Key attached whenever configured, independent of signing mode
    - Content-Type sent on POST/PUT only
    - Contract operations fail as CONTRACT_FAILED, proof generation as PROOF_FAILED,
      health as HEALTH_CHECK_FAILED — the transport failure kept as cause
    - Exceptions only for programmer errors (bad config, invalid request model input)

Design Decisions:
    - Explicit client object over a module-level cached client: injectable, testable,
      several bridges per process (ADR: no rebindable globals)
    - Injected httpx.AsyncClient supported: tests swap in MockTransport/ASGITransport
      without touching the pipeline
    - Typed pydantic payloads for known endpoints; unknown fields preserved via extra="allow"
"""

import asyncio
import json
import logging
import time
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, TypeVar
from urllib.parse import quote, urlsplit

import httpx
from pydantic import BaseModel, ValidationError

from midnight_bridge import __version__
from midnight_bridge.config import Settings
from midnight_bridge.core.canonical_path import build_path
from midnight_bridge.core.domain_types import HEADER_API_KEY, Address, ErrorKind
from midnight_bridge.core.errors import ConfigurationError
from midnight_bridge.core.response_mapper import (
    extract_tx_hash,
    map_response,
    require_fields,
)
from midnight_bridge.core.result import Failure, FailureContext, Result, Success
from midnight_bridge.core.retry_policy import RetryPolicy
from midnight_bridge.core.signing import resolve_algorithm
from midnight_bridge.infrastructure.transport import (
    CancelToken,
    OutgoingRequest,
    build_pipeline,
)
from midnight_bridge.schemas.bridge import (
    ContractCallRequest,
    ContractCallResult,
    ContractDeployment,
    ContractDeployRequest,
    ContractJoinReceipt,
    ContractJoinRequest,
    HealthStatus,
    NetworkMetadata,
    ProofRequest,
    ProofResponse,
    TransactionStatus,
    TransferReceipt,
    TxReceipt,
    WalletAddress,
    WalletBalance,
    WalletTransferRequest,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

USER_AGENT = f"midnight-bridge-python/{__version__}"
_BODY_METHODS = frozenset({"POST", "PUT"})


@dataclass(frozen=True)
class BridgeClientConfig:
    """Construction-time settings; never rebound after the client exists."""
    base_uri: str = "http://127.0.0.1:4100"
    api_key: str | None = None
    timeout_seconds: float = 10.0
    connect_timeout_seconds: float = 5.0
    signing_enabled: bool = False
    signing_key: str | None = None
    signing_algorithm: str = "sha256"
    retry_policy: RetryPolicy = field(default_factory=RetryPolicy)
    pool_max_connections: int = 20
    pool_max_keepalive: int = 10

    def __post_init__(self):
        parts = urlsplit(self.base_uri)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ConfigurationError(
                f"Invalid bridge base URI: {self.base_uri!r}", "bridge_base_uri",
            )
        if self.signing_enabled and not self.signing_key:
            raise ConfigurationError(
                "Request signing is enabled but no signing key is configured",
                "bridge_signing_key",
            )
        if self.timeout_seconds <= 0 or self.connect_timeout_seconds <= 0:
            raise ConfigurationError(
                "Bridge timeouts must be positive", "bridge_timeout_seconds",
            )
        resolve_algorithm(self.signing_algorithm)

    @classmethod
    def from_settings(cls, settings: Settings) -> "BridgeClientConfig":
        return cls(
            base_uri=settings.bridge_base_uri,
            api_key=settings.bridge_api_key,
            timeout_seconds=settings.bridge_timeout_seconds,
            connect_timeout_seconds=settings.bridge_connect_timeout_seconds,
            signing_enabled=settings.bridge_signing_enabled,
            signing_key=settings.bridge_signing_key,
            signing_algorithm=settings.bridge_signing_algo.value,
            retry_policy=RetryPolicy(
                max_retries=settings.retry_times,
                base_delay_ms=settings.retry_sleep_ms,
                backoff_multiplier=settings.retry_backoff_multiplier,
            ),
            pool_max_connections=settings.pool_max_connections,
            pool_max_keepalive=settings.pool_max_keepalive,
        )

    @property
    def timeout(self) -> httpx.Timeout:
        return httpx.Timeout(self.timeout_seconds, connect=self.connect_timeout_seconds)


def encode_body(body: Any) -> bytes:
    """Canonical JSON bytes for a request body; empty when there is none."""
    if body is None:
        return b""
    if isinstance(body, BaseModel):
        body = body.model_dump(mode="json")
    return json.dumps(
        body, sort_keys=True, separators=(",", ":"), ensure_ascii=False,
    ).encode("utf-8")


class BridgeClient:
    """Async client for the Midnight bridge. Use as `async with BridgeClient(...)`."""

    def __init__(
        self,
        config: BridgeClientConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.config = config
        parts = urlsplit(config.base_uri)
        self._origin = f"{parts.scheme}://{parts.netloc}"
        self._path_prefix = parts.path.rstrip("/")
        self._owns_http_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            timeout=config.timeout,
            limits=httpx.Limits(
                max_connections=config.pool_max_connections,
                max_keepalive_connections=config.pool_max_keepalive,
            ),
        )
        self._transport = build_pipeline(
            self._http,
            self._origin,
            config.retry_policy,
            timeout=config.timeout,
            signing_key=config.signing_key if config.signing_enabled else None,
            signing_algorithm=config.signing_algorithm,
            clock=clock,
            sleep=sleep,
        )

    @classmethod
    def from_settings(
        cls, settings: Settings, **kwargs: Any,
    ) -> "BridgeClient":
        return cls(BridgeClientConfig.from_settings(settings), **kwargs)

    @property
    def base_uri(self) -> str:
        return self.config.base_uri

    async def __aenter__(self) -> "BridgeClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Release pooled connections (only if this client created the pool)."""
        if self._owns_http_client:
            await self._http.aclose()

    # ─── Generic request ────────────────────────────────────────

    async def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        *,
        query: Mapping[str, str | None] | None = None,
        timeout: float | None = None,
        cancel: CancelToken | None = None,
    ) -> Result[Any]:
        """Send one logical request (retries included) and map the final response."""
        method = method.upper()
        endpoint = path.split("?", 1)[0]
        headers = {"Accept": "application/json", "User-Agent": USER_AGENT}
        if method in _BODY_METHODS:
            headers["Content-Type"] = "application/json"
        if self.config.api_key:
            headers[HEADER_API_KEY] = self.config.api_key

        outgoing = OutgoingRequest(
            method=method,
            path=build_path(self._path_prefix + path, dict(query) if query else None),
            body=encode_body(body),
            headers=headers,
            timeout=(
                httpx.Timeout(timeout, connect=self.config.connect_timeout_seconds)
                if timeout is not None else None
            ),
        )
        outcome = await self._transport.send(outgoing, cancel=cancel)
        if isinstance(outcome, Failure):
            return outcome

        result = map_response(outcome, endpoint)
        if isinstance(result, Failure):
            logger.warning(
                f"Bridge returned error: {result.message}",
                extra={
                    "endpoint": endpoint,
                    "status_code": outcome.status_code,
                    "error_kind": result.kind.value,
                },
            )
        return result

    async def get(self, path: str, query=None, **kwargs: Any) -> Result[Any]:
        return await self.request("GET", path, query=query, **kwargs)

    async def post(self, path: str, body: Any = None, **kwargs: Any) -> Result[Any]:
        return await self.request("POST", path, body, **kwargs)

    async def put(self, path: str, body: Any = None, **kwargs: Any) -> Result[Any]:
        return await self.request("PUT", path, body, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> Result[Any]:
        return await self.request("DELETE", path, **kwargs)

    # ─── Health & network ───────────────────────────────────────

    async def get_health(self, **kwargs: Any) -> Result[HealthStatus]:
        """GET /health — Failure(HEALTH_CHECK_FAILED) unless status is 'ok'."""
        operation = "check bridge health"
        result = await self.get("/health", **kwargs)
        if isinstance(result, Failure):
            return result.wrap(ErrorKind.HEALTH_CHECK_FAILED, operation)
        parsed = _parse(HealthStatus, result.payload, "/health", operation)
        if isinstance(parsed, Failure):
            return parsed.wrap(ErrorKind.HEALTH_CHECK_FAILED, operation)
        if not parsed.payload.is_ok:
            return Failure(
                kind=ErrorKind.HEALTH_CHECK_FAILED,
                message=parsed.payload.message or "Unknown health check failure",
                context=FailureContext(endpoint="/health", operation=operation),
            )
        return parsed

    async def health_check(self, **kwargs: Any) -> bool:
        result = await self.get_health(**kwargs)
        if isinstance(result, Failure):
            logger.error(
                f"Health check failed: {result.user_message()}",
                extra={"endpoint": "/health", "error_kind": result.kind.value},
            )
            return False
        return True

    async def get_network_metadata(self, **kwargs: Any) -> Result[NetworkMetadata]:
        result = await self.get("/network/metadata", **kwargs)
        return _parse_result(
            NetworkMetadata, result, "/network/metadata", "get network metadata",
        )

    # ─── Transactions ───────────────────────────────────────────

    async def submit_transaction(
        self, tx_data: Mapping[str, Any], **kwargs: Any,
    ) -> Result[TxReceipt]:
        """POST /tx/submit — requires tx_hash (or txHash) in the response.

        Retries re-send the same body: the bridge must deduplicate, or callers
        accept at-least-once submission.
        """
        operation = "submit transaction"
        result = await self.post("/tx/submit", dict(tx_data), **kwargs)
        return _with_tx_hash(TxReceipt, result, "/tx/submit", operation)

    async def get_transaction_status(
        self, tx_hash: str, **kwargs: Any,
    ) -> Result[TransactionStatus]:
        endpoint = f"/tx/{quote(tx_hash, safe='')}/status"
        result = await self.get(endpoint, **kwargs)
        return _parse_result(
            TransactionStatus, result, endpoint, "get transaction status",
        )

    # ─── Contracts & proofs ─────────────────────────────────────

    async def call_contract(
        self,
        contract_address: str,
        entrypoint: str,
        arguments: Mapping[str, Any] | None = None,
        **kwargs: Any,
    ) -> Result[ContractCallResult]:
        """POST /contract/call — read-only call, no transaction."""
        operation = f"call contract {contract_address}.{entrypoint}"
        body = ContractCallRequest(
            contract_address=contract_address,
            entrypoint=entrypoint,
            arguments=dict(arguments or {}),
        )
        result = await self.post("/contract/call", body, **kwargs)
        if isinstance(result, Failure):
            return result.wrap(ErrorKind.CONTRACT_FAILED, operation)
        return _parse(ContractCallResult, result.payload, "/contract/call", operation)

    async def generate_proof(
        self,
        contract_name: str,
        entrypoint: str,
        public_inputs: Mapping[str, Any] | None = None,
        private_inputs: Mapping[str, Any] | None = None,
        **kwargs: Any,
    ) -> Result[ProofResponse]:
        operation = f"generate proof for {contract_name}.{entrypoint}"
        body = ProofRequest(
            contract_name=contract_name,
            entrypoint=entrypoint,
            public_inputs=dict(public_inputs or {}),
            private_inputs=dict(private_inputs or {}),
        )
        result = await self.post("/proof/generate", body, **kwargs)
        if isinstance(result, Failure):
            return result.wrap(ErrorKind.PROOF_FAILED, operation)
        payload = result.payload
        if not isinstance(payload, dict) or not payload.get("proof"):
            return Failure(
                kind=ErrorKind.PROOF_FAILED,
                message="Missing proof in response",
                context=FailureContext(
                    endpoint="/proof/generate", operation=operation,
                    debug_info={"response": payload},
                ),
            )
        return _parse(ProofResponse, payload, "/proof/generate", operation)

    async def deploy_contract(
        self,
        contract_path: str,
        constructor_args: Mapping[str, Any] | None = None,
        options: Mapping[str, Any] | None = None,
        **kwargs: Any,
    ) -> Result[ContractDeployment]:
        operation = f"deploy contract {contract_path}"
        body = ContractDeployRequest(
            contract_path=contract_path,
            constructor_args=dict(constructor_args or {}),
            options=dict(options or {}),
        )
        result = await self.post("/contract/deploy", body, **kwargs)
        if isinstance(result, Failure):
            return result.wrap(ErrorKind.CONTRACT_FAILED, operation)
        return _with_tx_hash(
            ContractDeployment, result, "/contract/deploy", operation,
            required=("contract_address",),
        )

    async def join_contract(
        self,
        contract_address: str,
        params: Mapping[str, Any] | None = None,
        **kwargs: Any,
    ) -> Result[ContractJoinReceipt]:
        operation = f"join contract {contract_address}"
        body = ContractJoinRequest(
            contract_address=contract_address, params=dict(params or {}),
        )
        result = await self.post("/contract/join", body, **kwargs)
        if isinstance(result, Failure):
            return result.wrap(ErrorKind.CONTRACT_FAILED, operation)
        return _parse(ContractJoinReceipt, result.payload, "/contract/join", operation)

    # ─── Wallet ─────────────────────────────────────────────────

    async def get_wallet_address(self, **kwargs: Any) -> Result[WalletAddress]:
        operation = "get wallet address"
        result = await self.get("/wallet/address", **kwargs)
        if isinstance(result, Failure):
            return result.with_operation(operation)
        missing = require_fields(result.payload, "/wallet/address", "address")
        if missing is not None:
            return missing.with_operation(operation)
        return _parse(WalletAddress, result.payload, "/wallet/address", operation)

    async def get_wallet_balance(
        self, address: Address | None = None, **kwargs: Any,
    ) -> Result[WalletBalance]:
        """GET /wallet/balance — the address travels in the signed query string."""
        result = await self.get("/wallet/balance", query={"address": address}, **kwargs)
        return _parse_result(
            WalletBalance, result, "/wallet/balance", "get wallet balance",
        )

    async def wallet_transfer(
        self,
        to_address: Address,
        amount: str,
        options: Mapping[str, Any] | None = None,
        **kwargs: Any,
    ) -> Result[TransferReceipt]:
        body = WalletTransferRequest.model_validate({
            **dict(options or {}), "to_address": to_address, "amount": amount,
        })
        result = await self.post("/wallet/transfer", body, **kwargs)
        return _with_tx_hash(
            TransferReceipt, result, "/wallet/transfer", "transfer funds",
        )


# ─── Payload helpers ─────────────────────────────────────────────

def _parse(
    model: type[M], payload: Any, endpoint: str, operation: str,
) -> Result[M]:
    """Validate a success payload into its schema; mismatch is INVALID_RESPONSE."""
    try:
        return Success(model.model_validate(payload))
    except ValidationError as e:
        return Failure(
            kind=ErrorKind.INVALID_RESPONSE,
            message=f"Unexpected {endpoint} payload ({e.error_count()} invalid field(s))",
            context=FailureContext(
                endpoint=endpoint, operation=operation,
                debug_info={"errors": e.errors(include_url=False)},
            ),
        )


def _parse_result(
    model: type[M], result: Result[Any], endpoint: str, operation: str,
) -> Result[M]:
    if isinstance(result, Failure):
        return result.with_operation(operation)
    return _parse(model, result.payload, endpoint, operation)


def _with_tx_hash(
    model: type[M],
    result: Result[Any],
    endpoint: str,
    operation: str,
    required: tuple[str, ...] = (),
) -> Result[M]:
    """Parse a payload that must carry tx_hash/txHash plus `required` fields."""
    if isinstance(result, Failure):
        return result.with_operation(operation)
    tx_hash = extract_tx_hash(result.payload, endpoint)
    if isinstance(tx_hash, Failure):
        return tx_hash.with_operation(operation)
    missing = require_fields(result.payload, endpoint, *required)
    if missing is not None:
        return missing.with_operation(operation)
    return _parse(model, result.payload, endpoint, operation)
