"""Application configuration via Pydantic Settings.

All configuration is loaded from environment variables following 12-factor principles.
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

    # Database
    database_url: str = Field(
        description="PostgreSQL async connection string",
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

    # Auth: tokens are issued by the external auth provider and only verified here
    auth_jwt_secret: str = Field(
        min_length=32,
        description="Shared secret used by the auth provider to sign JWTs (minimum 32 characters)",
    )
    auth_jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    auth_jwt_audience: str | None = Field(
        default="authenticated",
        description="Expected JWT audience claim (None disables the check)",
    )

    # Property data provider
    property_provider: str = Field(
        default="zillow",
        description="Name of the property data provider",
    )
    rapidapi_key: str | None = Field(
        default=None,
        description="RapidAPI key for the Zillow property data API",
    )
    rapidapi_zillow_host: str = Field(
        default="zillow56.p.rapidapi.com",
        description="RapidAPI host serving the Zillow search_address endpoint",
    )
    property_provider_timeout: float = Field(
        default=10.0,
        description="Property data provider request timeout in seconds",
        gt=0,
    )

    # Property cache
    property_cache_ttl_hours: int = Field(
        default=24,
        description="Hours after which cached provider data is considered stale",
        gt=0,
    )
    property_listing_max_limit: int = Field(
        default=100,
        description="Maximum rows returned by the popular/recent property listings",
        gt=0,
    )

    # Credits
    smart_search_credit_cost: int = Field(
        default=1,
        description="Credits consumed by a smart search that reaches the provider",
        gt=0,
    )
    pin_credit_cost: int = Field(
        default=0,
        description="Credits consumed by creating a pin; 0 makes pins free",
        ge=0,
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_dir: str | None = Field(
        default=None,
        description="Directory for log files (enables file logging with 24h rotation when set)",
    )
    log_json: bool = Field(
        default=False,
        description="Write JSON lines to stderr instead of human-readable text",
    )

    # CORS
    cors_origins: str = Field(
        default="",
        description="Comma-separated list of allowed CORS origins (must be explicitly configured)",
    )
    cors_origin_regex: str = Field(
        default="",
        description="Regex pattern for allowed CORS origins",
    )

    # Environment
    environment: str = Field(
        default="production",
        description="Deployment environment name (e.g. production, dev, staging)",
    )

    # API
    api_v1_prefix: str = Field(
        default="/api/v1",
        description="API version prefix",
    )
    rate_limit_per_minute: int = Field(
        default=200,
        description="Maximum API requests per minute per IP address",
        gt=0,
    )
    trusted_proxy_headers: str = Field(
        default="CF-Connecting-IP,X-Forwarded-For,X-Real-IP",
        description="Comma-separated list of HTTP headers to check for real client IP, in priority order",
    )

    @property
    def trusted_proxy_header_list(self) -> list[str]:
        """Parse trusted proxy headers string into a list."""
        if not self.trusted_proxy_headers.strip():
            return []
        return [h.strip() for h in self.trusted_proxy_headers.split(",") if h.strip()]

    @property
    def cors_origin_list(self) -> list[str]:
        """Parse CORS origins string into a list."""
        if not self.cors_origins.strip():
            return []
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()  # type: ignore[call-arg]
