"""Application configuration via Pydantic Settings.

All configuration is loaded from environment variables following 12-factor principles.
Store and provider credentials have no defaults, so a missing variable fails at startup.
"""

import re

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database (credential store and verification log sink)
    database_url: str = Field(
        description="SQLAlchemy async connection string for users and verification logs",
    )
    database_schema: str | None = Field(
        default=None,
        description="PostgreSQL schema for isolated environments (e.g., pr_42)",
    )

    @field_validator("database_schema")
    @classmethod
    def validate_database_schema(cls, v: str | None) -> str | None:
        if v is None:
            return None
        if not re.match(r"^[a-z_][a-z0-9_]{0,62}$", v):
            msg = "Invalid database_schema: must match ^[a-z_][a-z0-9_]{0,62}$"
            raise ValueError(msg)
        return v

    # Key-value store (sessions and rate limiting)
    redis_url: str = Field(description="Redis connection URL for sessions and rate limiting")
    redis_token: str = Field(description="Redis access token (sent as the connection password)")

    # Password hashing
    password_hash_rounds: int = Field(
        description="bcrypt cost factor used when hashing new passwords",
        ge=4,
        le=31,
    )

    # Locality lookup provider
    locality_api_url: str = Field(description="Postcode/locality search endpoint of the lookup provider")
    locality_api_key: str = Field(description="Bearer token for the locality lookup provider")
    locality_api_timeout: float = Field(
        default=10.0,
        description="Locality lookup request timeout in seconds",
        gt=0,
    )

    # Sessions
    session_cookie_name: str = Field(
        default="session-id",
        description="Name of the cookie carrying the opaque session token",
    )
    session_ttl_seconds: int = Field(
        default=60 * 60 * 24 * 7,
        description="Session lifetime in seconds (store TTL and cookie expiry)",
        gt=0,
    )

    # Rate limiting
    rate_limit_requests: int = Field(
        default=30,
        description="Maximum address verifications per window per IP address",
        gt=0,
    )
    rate_limit_requests_ci: int = Field(
        default=1000,
        description="Per-window quota used in test and CI environments",
        gt=0,
    )
    rate_limit_window_seconds: int = Field(
        default=60,
        description="Sliding window length in seconds",
        gt=0,
    )
    trusted_proxy_headers: str = Field(
        default="X-Forwarded-For",
        description="Comma-separated list of HTTP headers to check for real client IP, in priority order",
    )

    @property
    def trusted_proxy_header_list(self) -> list[str]:
        """Parse trusted proxy headers string into a list."""
        if not self.trusted_proxy_headers.strip():
            return []
        return [h.strip() for h in self.trusted_proxy_headers.split(",") if h.strip()]

    @property
    def effective_rate_limit(self) -> int:
        """Quota applied by the verification rate limiter for this environment."""
        if self.ci or self.environment == "test":
            return self.rate_limit_requests_ci
        return self.rate_limit_requests

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_dir: str | None = Field(
        default=None,
        description="Directory for log files (enables file logging with 24h rotation when set)",
    )

    # CORS
    cors_origins: str = Field(
        default="",
        description="Comma-separated list of allowed CORS origins (must be explicitly configured)",
    )

    @property
    def cors_origin_list(self) -> list[str]:
        """Parse CORS origins string into a list."""
        if not self.cors_origins.strip():
            return []
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # Environment
    environment: str = Field(
        default="production",
        description="Deployment environment name (e.g. production, development, test)",
    )
    ci: bool = Field(
        default=False,
        description="Set by CI runners; raises the rate limit quota",
    )

    @property
    def is_production(self) -> bool:
        """Whether cookies must be marked Secure."""
        return self.environment == "production"


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()  # type: ignore[call-arg]
