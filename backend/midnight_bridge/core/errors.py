"""Error Hierarchy — typed, categorized exceptions for programmer errors and server rejections.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Exceptions are NOT used for transport control flow: the client returns Result values
    - Raised only for invalid construction, reference-server rejections, or Result.unwrap()
    - to_response() produces the bridge's flat JSON error envelope

Design Decisions:
    - Single hierarchy with BridgeError base: FastAPI global handler catches all (ADR: uniform error shape)
    - Signature rejections are exceptions on the server side only: FastAPI dependencies
      abort a request by raising, which is the framework's own idiom
"""

import time
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from midnight_bridge.core.result import Failure


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    CONFIGURATION = "configuration"
    AUTHENTICATION = "authentication"
    VALIDATION = "validation"
    RESOURCE_NOT_FOUND = "resource_not_found"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"


class BridgeError(Exception):
    """Base exception for all bridge errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to the bridge's flat JSON error body."""
        return {
            "error": self.message,
            "status_code": self.http_status,
            "timestamp": int(time.time()),
        }


# ─── Programmer Errors ──────────────────────────────────────────

class ConfigurationError(BridgeError):
    """Client or server constructed with invalid settings."""
    def __init__(self, message: str, setting: str):
        super().__init__(
            message, "CONFIGURATION_ERROR", ErrorCategory.CONFIGURATION,
            ErrorSeverity.CRITICAL, 500,
        )
        self.setting = setting


# ─── Authentication Errors (401, reference server) ──────────────

class SignatureError(BridgeError):
    """Inbound request failed signature verification."""
    def __init__(self, message: str, code: str):
        super().__init__(
            message, code, ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, 401,
        )


class MissingSignatureError(SignatureError):
    def __init__(self):
        super().__init__("Missing signature headers", "MISSING_SIGNATURE")


class TimestampExpiredError(SignatureError):
    def __init__(self):
        super().__init__("Request timestamp expired", "TIMESTAMP_EXPIRED")


class InvalidSignatureError(SignatureError):
    def __init__(self):
        super().__init__("Invalid signature", "INVALID_SIGNATURE")


# ─── Request Errors (reference server) ──────────────────────────

class MissingFieldError(BridgeError):
    """Request body lacks fields the endpoint requires."""
    def __init__(self, message: str):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, 400,
        )


# ─── Opt-in Escalation ──────────────────────────────────────────

class BridgeOperationError(BridgeError):
    """Raised by Result.unwrap() for callers that prefer exceptions."""
    def __init__(self, failure: "Failure"):
        super().__init__(
            failure.user_message(), failure.kind.value.upper(),
            ErrorCategory.EXTERNAL_API, ErrorSeverity.ERROR,
            failure.context.status_code or 503,
        )
        self.failure = failure
