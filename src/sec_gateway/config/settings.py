# src/sec_gateway/config/settings.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""SEC Gateway Configuration (Pydantic Settings, v2)

Summary:
    Typed, validated application configuration for the SEC gateway. This
    module centralizes environment parsing and validation. Only adapters,
    infrastructure and dependency wiring read it; the gateway core receives
    plain values through its constructors.

Design:
    - Pydantic v2 BaseSettings with `extra='forbid'` to catch unknown env.
    - Explicit field declarations with constrained types and ranges.
    - Environment enumeration for behavior toggles (includes TEST).
    - Singleton accessor `get_settings()` with LRU cache.
    - Safe, structured logging (no secrets).
"""

from __future__ import annotations

import logging
from enum import Enum
from functools import lru_cache
from typing import Literal

from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Environment(str, Enum):
    """Logical deployment environment."""

    DEVELOPMENT = "development"
    TEST = "test"
    CI = "ci"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """Typed application configuration for the SEC gateway."""

    # ---------------------------
    # Core environment
    # ---------------------------
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Logical deployment environment.",
        validation_alias="ENVIRONMENT",
    )
    service_name: str = Field(
        default="SEC Gateway",
        description="Logical service name for logging and health payloads.",
        validation_alias="SERVICE_NAME",
    )
    service_version: str | None = Field(
        default=None,
        description="Service version reported in OpenAPI and startup logs.",
        validation_alias="SERVICE_VERSION",
    )
    log_level: str | None = Field(
        default=None,
        description="Override log level (e.g., 'DEBUG', 'INFO').",
        validation_alias="LOG_LEVEL",
    )
    api_prefix: str = Field(
        default="/api",
        description="Global route prefix for gateway endpoints.",
        validation_alias="API_PREFIX",
    )

    # ---------------------------
    # Cache store
    # ---------------------------
    cache_backend: Literal["redis", "memory"] = Field(
        default="redis",
        description="Cache store implementation. 'memory' is for tests and local runs.",
        validation_alias="CACHE_BACKEND",
    )
    cache_namespace: str = Field(
        default="sec_gateway:v1",
        min_length=1,
        description="Prefix applied to every cache key.",
        validation_alias="CACHE_NAMESPACE",
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL for the response cache.",
        validation_alias="REDIS_URL",
    )
    redis_health_check_interval_s: int = Field(
        default=15,
        ge=1,
        le=3600,
        description="Health check interval for Redis clients in seconds.",
        validation_alias="REDIS_HEALTH_CHECK_INTERVAL_S",
    )
    redis_socket_timeout_s: float = Field(
        default=3.0,
        ge=0.1,
        le=60.0,
        description="Socket timeout in seconds for Redis commands.",
        validation_alias="REDIS_SOCKET_TIMEOUT_S",
    )
    redis_socket_connect_timeout_s: float = Field(
        default=3.0,
        ge=0.1,
        le=60.0,
        description="Socket connect timeout in seconds for Redis.",
        validation_alias="REDIS_SOCKET_CONNECT_TIMEOUT_S",
    )

    # ---------------------------
    # Inbound rate governor
    # ---------------------------
    rate_limit_enabled: bool = Field(
        default=True,
        description="Enforce the process-wide inbound request budget.",
        validation_alias="RATE_LIMIT_ENABLED",
    )
    rate_limit_requests: int = Field(
        default=10,
        ge=1,
        le=10_000,
        description="Requests admitted per window (SEC fair-access guidance is 10/s).",
        validation_alias="RATE_LIMIT_REQUESTS",
    )
    rate_limit_window_seconds: float = Field(
        default=1.0,
        gt=0.0,
        le=3600.0,
        description="Fixed window length in seconds.",
        validation_alias="RATE_LIMIT_WINDOW_SECONDS",
    )

    # ---------------------------
    # Upstream provider (SEC EDGAR)
    # ---------------------------
    sec_base_url: str = Field(
        default="https://data.sec.gov",
        description="Base URL for the SEC EDGAR data APIs.",
        validation_alias="SEC_BASE_URL",
    )
    sec_user_agent: str = Field(
        ...,
        description=(
            "User agent sent to the SEC. Must follow SEC fair-access guidelines and "
            "include contact details."
        ),
        validation_alias="SEC_USER_AGENT",
    )
    sec_timeout_s: float = Field(
        default=8.0,
        ge=0.1,
        le=120.0,
        description="Per-request timeout in seconds for upstream calls.",
        validation_alias="SEC_TIMEOUT_S",
    )
    sec_feed_path: str = Field(
        default="/xbrl-rss/edgar-xbrl-rss.xml",
        description="Path of the filings RSS feed relative to the base URL.",
        validation_alias="SEC_FEED_PATH",
    )
    sec_allowed_domain: str = Field(
        default="sec.gov",
        description="Domain that document URLs must belong to.",
        validation_alias="SEC_ALLOWED_DOMAIN",
    )

    # ---------------------------
    # HTTP surface
    # ---------------------------
    cors_allow_origins_raw: str | None = Field(
        default=None,
        description="Raw env for allowed CORS origins (comma-separated).",
        validation_alias="ALLOWED_ORIGINS",
    )
    cors_allow_origins: list[str] = Field(
        default_factory=list,
        description="Allowed CORS origins, derived from ALLOWED_ORIGINS.",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="forbid",
        case_sensitive=False,
    )

    @field_validator("sec_user_agent")
    @classmethod
    def _user_agent_required(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("SEC_USER_AGENT must be a non-empty contact string.")
        return value.strip()

    @field_validator("api_prefix")
    @classmethod
    def _normalize_prefix(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        if value and not value.startswith("/"):
            value = "/" + value
        return value

    @model_validator(mode="after")
    def _compute_cors(self) -> Settings:
        """Compute the CORS origin list.

        Raises:
            ValueError: If '*' is requested outside development/test.
        """
        raw = (self.cors_allow_origins_raw or "").strip()
        entries = [e.strip() for e in raw.split(",") if e.strip()]
        if "*" in entries and self.environment not in (
            Environment.DEVELOPMENT,
            Environment.TEST,
        ):
            raise ValueError(
                "'*' CORS origin is only allowed in development/test environments.",
            )
        self.cors_allow_origins = entries
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached singleton `Settings` instance.

    Raises:
        RuntimeError: If configuration is invalid.
    """
    try:
        settings = Settings()
    except ValidationError as exc:
        logger.exception("Invalid application configuration")
        raise RuntimeError(f"Invalid configuration: {exc}") from exc

    logger.info(
        "Settings initialized",
        extra={
            "extra": {
                "environment": settings.environment.value,
                "cache_backend": settings.cache_backend,
                "cache_namespace": settings.cache_namespace,
                "rate_limit": {
                    "enabled": settings.rate_limit_enabled,
                    "requests": settings.rate_limit_requests,
                    "window_s": settings.rate_limit_window_seconds,
                },
                "sec_base_url": settings.sec_base_url,
                "sec_timeout_s": settings.sec_timeout_s,
                "cors_count": len(settings.cors_allow_origins),
            }
        },
    )
    return settings
