"""Application configuration via Pydantic Settings.

All configuration is loaded from environment variables following 12-factor principles.
"""

import os
from typing import Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_FALLBACK_COUNTRIES = "France,United Kingdom,Singapore,Australia,China,Japan,Korea,Netherlands"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Geocoding: primary provider (OpenCage)
    opencage_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("opencage_api_key", "opencage_key"),
        description="OpenCage Geocoding API key (required for any cache miss)",
    )
    geocoder_timeout: float = Field(
        default=10.0,
        description="Per-request provider timeout in seconds",
        gt=0,
    )
    geocoder_language: str = Field(
        default="en",
        description="Language hint sent to the primary provider",
    )

    # Geocoding: resolution policy
    geocoder_fallback_countries: str = Field(
        default=DEFAULT_FALLBACK_COUNTRIES,
        description="Comma-separated countries appended, in order, when an address names no country",
    )
    geocoder_us_hint_enabled: bool = Field(
        default=True,
        description="Retry with ', USA' when an address looks like a US mailing address",
    )

    @property
    def geocoder_fallback_country_list(self) -> list[str]:
        """Parse fallback countries string into a list, preserving order.

        Returns:
            List of country names.
        """
        if not self.geocoder_fallback_countries.strip():
            return []
        return [c.strip() for c in self.geocoder_fallback_countries.split(",") if c.strip()]

    # Geocoding: Nominatim (OpenStreetMap) secondary provider
    geocoder_nominatim_enabled: bool = Field(
        default=True,
        description="Query Nominatim once after the primary provider is exhausted",
    )
    geocoder_nominatim_user_agent: str = Field(
        default="reseller-map/1.0 (reseller geocoding)",
        description="Descriptive User-Agent required by the Nominatim usage policy",
    )
    geocoder_nominatim_email: str = Field(
        default="",
        description="Contact email for Nominatim usage policy compliance",
    )
    geocoder_nominatim_timeout: float = Field(
        default=10.0,
        description="Nominatim request timeout in seconds",
        gt=0,
    )

    # Geocoding: pacing
    geocoder_pacing: Literal["sequential", "concurrent"] = Field(
        default="sequential",
        description="Batch discipline: one address at a time, or a bounded worker pool",
    )
    geocoder_request_interval: float = Field(
        default=1.1,
        description="Minimum seconds between primary provider requests (0 disables the gate)",
        ge=0,
    )
    geocoder_concurrency: int = Field(
        default=3,
        description="Worker pool size for concurrent pacing",
        gt=0,
    )

    # Cache
    cache_dir: str | None = Field(
        default=None,
        description="Directory holding the durable geocoding cache (defaults to ./.data, or /tmp on Vercel)",
    )
    cache_memory_enabled: bool = Field(
        default=True,
        description="Keep an in-process cache tier in front of the durable cache",
    )

    @property
    def resolved_cache_dir(self) -> str:
        """Directory for the durable cache, applying the platform default."""
        if self.cache_dir:
            return self.cache_dir
        if os.environ.get("VERCEL"):
            return "/tmp"  # noqa: S108
        return ".data"

    # Access
    map_secret: str | None = Field(
        default=None,
        description="Shared secret expected as ?key= on HTTP endpoints (disabled when unset)",
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

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        upper = v.strip().upper()
        if upper not in {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}:
            msg = f"Invalid log_level: {v!r}"
            raise ValueError(msg)
        return upper

    # API
    api_v1_prefix: str = Field(
        default="/api/v1",
        description="API version prefix",
    )


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()
