"""Error Handlers — global exception handlers for the reference bridge server.

Invariants:
    - BridgeError → its http_status with {error, status_code, timestamp}
    - HTTPException (404, 405, ...) → same flat body, detail as `error`
    - RequestValidationError → 400 flat body
    - Exception (catch-all) → 500, never leaks internal details

Design Decisions:
    - Flat error body over nested envelopes: the bridge wire contract reads `error` at top level
    - Extracted from main.py (ADR: import fan-out < 10)
"""

import logging
import time

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from midnight_bridge.core.errors import BridgeError

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_bridge_error_handler(app)
    _register_http_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def error_body(status_code: int, message: str) -> dict:
    return {
        "error": message,
        "status_code": status_code,
        "timestamp": int(time.time()),
    }


def _register_bridge_error_handler(app: FastAPI) -> None:

    @app.exception_handler(BridgeError)
    async def bridge_error_handler(request: Request, exc: BridgeError):
        """Handle signature rejections and request errors."""
        logger.warning(
            f"BridgeError: {exc.message}",
            extra={"error_code": exc.code, "path": request.url.path},
        )
        return JSONResponse(
            status_code=exc.http_status, content=exc.to_response(),
        )


def _register_http_error_handler(app: FastAPI) -> None:

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            message = "Endpoint not found"
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.status_code, message),
        )


def _register_validation_error_handler(app: FastAPI) -> None:

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        logger.warning(
            f"Validation error on {request.url.path}: {exc.errors()}",
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_body(status.HTTP_400_BAD_REQUEST, "Invalid request data"),
        )


def _register_generic_error_handler(app: FastAPI) -> None:

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all — never leaks internal details."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "An unexpected error occurred",
            ),
        )
