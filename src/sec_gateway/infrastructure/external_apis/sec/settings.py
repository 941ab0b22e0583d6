# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""SEC transport client settings.

Purpose:
    Provide Pydantic-based configuration for the SEC HTTP client: base URL,
    identifying user agent, timeout, feed path and the provider domain.

Layer:
    infrastructure

Notes:
    - Values are sourced from environment variables prefixed with ``SEC_``.
    - The application wiring builds this from :class:`~sec_gateway.config.Settings`
      so a single source of truth is used at runtime.
"""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SecSettings(BaseSettings):
    """Configuration for the SEC HTTP client.

    Environment variables (with ``model_config.env_prefix``):

    * ``SEC_BASE_URL``
    * ``SEC_USER_AGENT``
    * ``SEC_TIMEOUT_S``
    * ``SEC_FEED_PATH``
    * ``SEC_ALLOWED_DOMAIN``
    """

    base_url: str = Field(
        "https://data.sec.gov",
        description="Base URL for the SEC EDGAR data APIs.",
    )
    user_agent: str = Field(
        ...,
        description=(
            "User agent string sent to the SEC. Must follow SEC guidelines and "
            "include contact details."
        ),
    )
    timeout_s: float = Field(
        8.0,
        gt=0.0,
        description="Per-request timeout in seconds for the transport client.",
    )
    feed_path: str = Field(
        "/xbrl-rss/edgar-xbrl-rss.xml",
        description="Filings RSS feed path relative to ``base_url``.",
    )
    allowed_domain: str = Field(
        "sec.gov",
        description="Domain that caller-supplied document URLs must belong to.",
    )

    model_config: SettingsConfigDict = SettingsConfigDict(
        env_prefix="SEC_",
        extra="ignore",
    )

    @field_validator("user_agent")
    @classmethod
    def _user_agent_required(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("user_agent must be a non-empty contact string")
        return value.strip()

    @field_validator("feed_path")
    @classmethod
    def _feed_path_absolute(cls, value: str) -> str:
        return value if value.startswith("/") else "/" + value
