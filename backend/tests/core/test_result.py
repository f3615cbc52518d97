"""Typed Results — Success/Failure behavior, wrapping and user messages.

Tests:
    - Success.unwrap / map
    - Failure.unwrap raises BridgeOperationError with the user message
    - wrap() keeps the original failure as cause and root_cause walks the chain
    - user_message() phrasing per kind
    - is_retryable mirrors the transient classification
"""

import pytest

from midnight_bridge.core.domain_types import ErrorKind
from midnight_bridge.core.errors import BridgeOperationError
from midnight_bridge.core.result import Failure, FailureContext, Success


def test_success_unwrap_and_map():
    result = Success({"tx_hash": "abc"})
    assert result.is_success
    assert result.unwrap() == {"tx_hash": "abc"}
    assert result.map(lambda p: p["tx_hash"]) == Success("abc")


def test_failure_map_is_identity():
    failure = Failure(ErrorKind.TIMEOUT, "slow")
    assert failure.map(lambda p: p + 1) is failure
    assert not failure.is_success


def test_failure_unwrap_raises_operation_error():
    failure = Failure(
        ErrorKind.BRIDGE_ERROR, "Invalid signature",
        FailureContext(endpoint="/tx/submit", status_code=401),
    ).with_operation("submit transaction")
    with pytest.raises(BridgeOperationError) as exc_info:
        failure.unwrap()
    assert exc_info.value.http_status == 401
    assert exc_info.value.code == "BRIDGE_ERROR"
    assert exc_info.value.failure is failure
    assert str(exc_info.value) == (
        "Failed to submit transaction: bridge returned HTTP 401 (Invalid signature)"
    )


def test_unwrap_without_status_defaults_to_503():
    with pytest.raises(BridgeOperationError) as exc_info:
        Failure(ErrorKind.CONNECTION_FAILED, "refused").unwrap()
    assert exc_info.value.http_status == 503


def test_wrap_preserves_cause():
    original = Failure(
        ErrorKind.CONNECTION_FAILED, "refused",
        FailureContext(endpoint="/contract/call"),
    )
    wrapped = original.wrap(ErrorKind.CONTRACT_FAILED, "call contract 0x1.get_name")
    assert wrapped.kind == ErrorKind.CONTRACT_FAILED
    assert wrapped.context.cause is original
    assert wrapped.context.endpoint == "/contract/call"
    assert wrapped.root_cause is original


def test_user_message_for_wrapped_connection_failure():
    wrapped = Failure(ErrorKind.CONNECTION_FAILED, "refused").wrap(
        ErrorKind.CONTRACT_FAILED, "deploy contract counter",
    )
    assert wrapped.user_message() == (
        "Failed to deploy contract counter: bridge unreachable"
    )


@pytest.mark.parametrize("kind,message,status,expected", [
    (ErrorKind.TIMEOUT, "t", None, "Bridge request failed: bridge timed out"),
    (ErrorKind.CANCELLED, "c", None, "Bridge request failed: request cancelled"),
    (
        ErrorKind.INVALID_RESPONSE, "Missing tx_hash in response", 500,
        "Bridge request failed: invalid bridge response (Missing tx_hash in response)",
    ),
    (
        ErrorKind.INVALID_SIGNATURE, "Invalid signature", 401,
        "Bridge request failed: request rejected (Invalid signature)",
    ),
])
def test_user_message_phrasing(kind, message, status, expected):
    failure = Failure(kind, message, FailureContext(status_code=status))
    assert failure.user_message() == expected


@pytest.mark.parametrize("kind,status,expected", [
    (ErrorKind.CONNECTION_FAILED, None, True),
    (ErrorKind.TIMEOUT, None, True),
    (ErrorKind.BRIDGE_ERROR, 408, True),
    (ErrorKind.BRIDGE_ERROR, 503, True),
    (ErrorKind.BRIDGE_ERROR, 401, False),
    (ErrorKind.INVALID_RESPONSE, 500, False),
    (ErrorKind.CANCELLED, None, False),
])
def test_is_retryable(kind, status, expected):
    assert Failure(kind, "x", FailureContext(status_code=status)).is_retryable is expected
