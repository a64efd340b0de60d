"""
Configuration module for the authentication gateway.

This module uses Pydantic Settings to load and validate environment variables
for token signing, the two upstream Azure Function targets, the HTTP server
and CORS.

Environment variables are loaded from .env file or system environment.
"""

from functools import lru_cache
from typing import List
from urllib.parse import urlsplit

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Settings are read once at startup and handed to the verifier, issuer and
    forwarder when the application is built.
    """

    # =========================================================================
    # Server Configuration
    # =========================================================================

    HOST: str = Field(
        default="0.0.0.0",
        description="Host to bind the gateway server",
    )

    PORT: int = Field(
        default=3000,
        description="Port to bind the gateway server",
        ge=1,
        le=65535,
    )

    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    ALLOWED_ORIGINS: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins",
    )

    # =========================================================================
    # Token Configuration
    # =========================================================================

    JWT_SECRET: str = Field(
        ...,
        description="Shared secret used to sign and verify access tokens",
        min_length=1,
    )

    JWT_ALGORITHM: str = Field(
        default="HS256",
        description="JWT signing algorithm (HS256, HS384 or HS512)",
    )

    JWT_EXPIRY_MINUTES: int = Field(
        default=60,
        description="Access token lifetime in minutes",
        ge=1,
        le=1440,
    )

    # =========================================================================
    # Upstream Configuration
    # =========================================================================

    AZURE_GET_URL: str = Field(
        ...,
        description="Azure Function URL that receives GET /get requests (may include ?code=...)",
    )

    AZURE_POST_URL: str = Field(
        ...,
        description="Azure Function URL that receives POST /post requests (may include ?code=...)",
    )

    UPSTREAM_TIMEOUT_SECONDS: float = Field(
        default=30.0,
        description="Timeout applied to every forwarded request",
        gt=0,
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        frozen=True,
    )

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("AZURE_GET_URL", "AZURE_POST_URL")
    @classmethod
    def validate_target_url(cls, v: str) -> str:
        """Targets must be absolute http(s) URLs"""
        v = v.strip()
        parts = urlsplit(v)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ValueError(f"Target URL must be an absolute http(s) URL, got '{v}'")
        return v

    @field_validator("JWT_ALGORITHM")
    @classmethod
    def validate_algorithm(cls, v: str) -> str:
        v = v.upper()
        if v not in ("HS256", "HS384", "HS512"):
            raise ValueError("JWT_ALGORITHM must be one of HS256, HS384, HS512")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v = v.upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level '{v}'")
        return v

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def allowed_origins_list(self) -> List[str]:
        """
        Parse and return ALLOWED_ORIGINS as a list.

        Returns:
            List of allowed origin URLs (``["*"]`` allows any origin).
        """
        return [
            origin.strip()
            for origin in self.ALLOWED_ORIGINS.split(",")
            if origin.strip()
        ]

    @property
    def target_urls(self) -> dict:
        """Upstream targets keyed by the route that uses them."""
        return {"get": self.AZURE_GET_URL, "post": self.AZURE_POST_URL}


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Application settings loaded from environment.

    Raises:
        pydantic.ValidationError: If JWT_SECRET or a target URL is missing
            or invalid.
    """
    return Settings()
