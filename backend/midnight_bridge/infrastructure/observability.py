"""Structured Logging — JSON formatter, setup, and header redaction.

Invariants:
    - All logs include timestamp, level, logger name, and message
    - Extra fields (endpoint, method, status_code, attempt, error_kind) surfaced when present
    - Signature and API key header values never reach a log record
    - JSON format in production, human-readable in development

Design Decisions:
    - JSONFormatter over third-party libs: zero dependencies, full control
    - setup_logging called once on startup via the reference server lifespan;
      library code only calls logging.getLogger(__name__)
"""

import json
import logging
from collections.abc import Mapping
from datetime import datetime, timezone

from midnight_bridge.core.domain_types import SENSITIVE_HEADERS

REDACTED = "***REDACTED***"

_EXTRA_KEYS = (
    "endpoint", "method", "path", "status_code", "attempt", "attempts",
    "error_kind", "error_code", "delay_ms", "headers", "outcome",
)


class JSONFormatter(logging.Formatter):
    """Format logs as JSON for structured logging in production."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _EXTRA_KEYS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", fmt: str = "json"):
    """Configure logging for the application."""
    handler = logging.StreamHandler()
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s — %(message)s",
        ))
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))


def redact_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Copy of headers with credential values masked."""
    return {
        name: REDACTED if name.lower() in SENSITIVE_HEADERS else value
        for name, value in headers.items()
    }
