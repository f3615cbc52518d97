"""Midnight Bridge — reference bridge server (FastAPI application entry point).

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Every matched route passes verify_request_signature before its handler runs
    - Global error handlers map BridgeError → flat {error, status_code, timestamp} bodies
    - Guard configuration is resolved once per app instance (app.state.guard_config)

Design Decisions:
    - App factory over module-level wiring: tests build apps with their own Settings
      (ADR: a signed and an unsigned server side by side in one test session)
    - Signature check as an app-level dependency, not middleware: unknown paths
      still answer 404 "Endpoint not found" without needing a signature
    - Lifespan over @app.on_event: FastAPI recommended pattern (ADR: FastAPI 0.128)
    - No OpenAPI/docs routes: every served path is part of the signed bridge surface
"""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI

from midnight_bridge import __version__
from midnight_bridge.api.error_handlers import register_error_handlers
from midnight_bridge.api.routes import contracts, health, transactions, wallet
from midnight_bridge.api.signature_guard import GuardConfig, verify_request_signature
from midnight_bridge.config import Settings, get_settings
from midnight_bridge.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup/shutdown lifecycle."""
        setup_logging(settings.log_level, settings.log_format)
        logger.info(
            "Midnight bridge started",
            extra={"outcome": "signed" if app.state.guard_config.enabled else "unsigned"},
        )
        yield
        logger.info("Midnight bridge shutting down")

    app = FastAPI(
        title="Midnight Bridge",
        version=__version__,
        lifespan=lifespan,
        dependencies=[Depends(verify_request_signature)],
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.guard_config = GuardConfig.from_settings(settings)

    register_error_handlers(app)

    # Routes — explicit registration
    app.include_router(health.router)
    app.include_router(transactions.router)
    app.include_router(contracts.router)
    app.include_router(wallet.router)

    return app


app = create_app()
