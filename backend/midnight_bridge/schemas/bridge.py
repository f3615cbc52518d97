"""Bridge Schemas — typed request and response bodies per bridge endpoint.

Invariants:
    - Request models reject empty identifiers (contract address, entrypoint, names)
    - Response models tolerate unknown fields (extra="allow"): bridges add metadata freely
    - Camel-case variants accepted where bridges emit them (txHash, chainId, publicOutputs)

Design Decisions:
    - AliasChoices over pre-normalizing dicts: one model reads both casings
    - Amounts and balances kept as strings: values exceed float precision (wei-style units)
"""

import base64
import binascii
import re
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from midnight_bridge.core.domain_types import Address

_HEX_RE = re.compile(r"^[0-9a-fA-F]+$")


class _Response(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


def _tx_hash_field(default: Any = ...) -> Any:
    return Field(default, validation_alias=AliasChoices("tx_hash", "txHash"))


# ─── Requests ────────────────────────────────────────────────────

class ContractCallRequest(BaseModel):
    """POST /contract/call — read-only contract invocation."""
    contract_address: str = Field(min_length=1)
    entrypoint: str = Field(min_length=1)
    arguments: dict[str, Any] = Field(default_factory=dict)


class ProofRequest(BaseModel):
    """POST /proof/generate — zero-knowledge proof for one circuit entrypoint."""
    contract_name: str = Field(min_length=1)
    entrypoint: str = Field(min_length=1)
    public_inputs: dict[str, Any] = Field(default_factory=dict)
    private_inputs: dict[str, Any] = Field(default_factory=dict)


class ContractDeployRequest(BaseModel):
    """POST /contract/deploy."""
    contract_path: str = Field(min_length=1)
    constructor_args: dict[str, Any] = Field(default_factory=dict)
    options: dict[str, Any] = Field(default_factory=dict)


class ContractJoinRequest(BaseModel):
    """POST /contract/join."""
    contract_address: str = Field(min_length=1)
    params: dict[str, Any] = Field(default_factory=dict)


class WalletTransferRequest(BaseModel):
    """POST /wallet/transfer — extra options are sent flat beside the required fields."""
    model_config = ConfigDict(extra="allow")

    to_address: Address = Field(min_length=1)
    amount: str = Field(min_length=1)


# ─── Responses ───────────────────────────────────────────────────

class HealthStatus(_Response):
    status: str
    message: str | None = None
    # Unix seconds or ISO-8601, depending on the bridge build
    timestamp: int | str | None = None
    version: str | None = None

    @property
    def is_ok(self) -> bool:
        return self.status == "ok"


class NetworkMetadata(_Response):
    network_id: str | None = None
    network_name: str | None = Field(
        None, validation_alias=AliasChoices("network_name", "name"),
    )
    chain_id: str | None = Field(
        None, validation_alias=AliasChoices("chain_id", "chainId"),
    )
    block_height: int | None = None
    syncing: bool | None = None
    explorer_uri: str | None = Field(
        None, validation_alias=AliasChoices("explorer_uri", "explorerUri"),
    )
    protocol_params: dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("protocol_params", "protocolParams"),
    )

    @property
    def is_mainnet(self) -> bool:
        return (self.network_name or "").lower() == "mainnet"

    def explorer_tx_url(self, tx_hash: str) -> str | None:
        if self.explorer_uri is None:
            return None
        return f"{self.explorer_uri.rstrip('/')}/tx/{tx_hash}"


class TxReceipt(_Response):
    tx_hash: str = _tx_hash_field()
    status: str | None = None


class TransactionStatus(_Response):
    status: str
    tx_hash: str | None = _tx_hash_field(None)
    confirmations: int = 0
    block_height: int | None = None

    @property
    def is_confirmed(self) -> bool:
        return self.status == "confirmed"


class ContractCallResult(_Response):
    success: bool = True
    result: Any = Field(None, validation_alias=AliasChoices("result", "value"))
    gas_used: int | None = None
    error: str | None = None


class ProofResponse(_Response):
    proof: str = Field(min_length=1)
    verification_key: str | None = None
    public_inputs: dict[str, Any] = Field(default_factory=dict)
    public_outputs: dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("public_outputs", "publicOutputs"),
    )
    verified: bool = False

    def as_hex(self) -> str:
        """Proof bytes as hex; bridges emit either hex or base64."""
        if _HEX_RE.match(self.proof):
            return self.proof
        try:
            return base64.b64decode(self.proof, validate=True).hex()
        except (binascii.Error, ValueError):
            raise ValueError("Proof is neither hex nor base64") from None

    def as_base64(self) -> str:
        if _HEX_RE.match(self.proof):
            try:
                return base64.b64encode(bytes.fromhex(self.proof)).decode("ascii")
            except (ValueError, binascii.Error):
                return self.proof
        return self.proof


class ContractDeployment(_Response):
    contract_address: str
    tx_hash: str = _tx_hash_field()
    status: str | None = None


class ContractJoinReceipt(_Response):
    success: bool = True
    tx_hash: str | None = _tx_hash_field(None)
    participant_id: str | None = None
    contract_address: str | None = None


class WalletAddress(_Response):
    address: Address = Field(min_length=1)
    public_key: str | None = None


class WalletBalance(_Response):
    balance: str
    unit: str | None = None
    address: Address | None = None

    @field_validator("balance", mode="before")
    @classmethod
    def stringify_balance(cls, v: Any) -> Any:
        """Bridges send balances as numbers or strings; keep exact digits."""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


class TransferReceipt(_Response):
    tx_hash: str = _tx_hash_field()
    status: str | None = None
    to_address: Address | None = None
    amount: str | int | None = None
