"""Bridge Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets (API key, signing key) come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - Settings are read once; clients copy them into immutable config at construction

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support (ADR: developer UX)
    - MIDNIGHT_ prefix: matches the bridge service's own env naming
    - Defaults provided for all non-secret settings: works out-of-the-box against a local bridge
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from midnight_bridge.core.domain_types import (
    DEFAULT_ACCEPTANCE_WINDOW_SECONDS,
    SigningAlgorithm,
)


class Settings(BaseSettings):
    """Bridge settings from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="MIDNIGHT_", case_sensitive=False,
        extra="ignore",
    )

    # Bridge endpoint
    bridge_base_uri: str = "http://127.0.0.1:4100"
    bridge_api_key: str | None = None
    bridge_timeout_seconds: float = Field(10.0, gt=0)
    bridge_connect_timeout_seconds: float = Field(5.0, gt=0)

    @field_validator("bridge_base_uri")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v.startswith(("http://", "https://")):
            raise ValueError("bridge_base_uri must be an http(s) URL")
        return v

    # Request signing
    bridge_signing_enabled: bool = False
    bridge_signing_key: str | None = None
    bridge_signing_algo: SigningAlgorithm = SigningAlgorithm.SHA256
    signature_window_seconds: int = Field(DEFAULT_ACCEPTANCE_WINDOW_SECONDS, gt=0)

    # Retry — exponential backoff: retry_sleep_ms * multiplier ** attempt
    retry_times: int = Field(3, ge=0)
    retry_sleep_ms: int = Field(100, ge=0)
    retry_backoff_multiplier: float = Field(2.0, ge=1)

    # Connection pool
    pool_max_connections: int = Field(20, gt=0)
    pool_max_keepalive: int = Field(10, ge=0)

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
