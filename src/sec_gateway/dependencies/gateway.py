# src/sec_gateway/dependencies/gateway.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Dependency wiring for the resource gateway.

Overview:
    Builds the concrete collaborators behind :class:`ResourceGateway` from the
    canonical :class:`Settings` and exposes a FastAPI provider for routers.

Layer:
    dependencies

Design:
    * SEC client settings are derived from ``Settings`` (single source of truth).
    * Cache implementation is selected by ``CACHE_BACKEND``:
        - ``redis``: fail-open :class:`RedisCacheStore` on the shared client.
        - ``memory``: process-local :class:`InMemoryCacheStore`.
    * The gateway is built once per application (in the lifespan) and kept on
      ``app.state``; the provider builds it lazily when the lifespan did not
      run (e.g. ASGI transports in tests).
"""

from __future__ import annotations

import httpx
from fastapi import FastAPI, Request

from sec_gateway.application.interfaces.cache_port import CacheStorePort
from sec_gateway.application.services.rate_governor import FixedWindowRateGovernor
from sec_gateway.application.use_cases.resources.fetch_resource import ResourceGateway
from sec_gateway.config.settings import Settings, get_settings
from sec_gateway.infrastructure.caching.memory_cache import InMemoryCacheStore
from sec_gateway.infrastructure.caching.redis_cache import RedisCacheStore
from sec_gateway.infrastructure.external_apis.sec.client import SecClient
from sec_gateway.infrastructure.external_apis.sec.settings import SecSettings
from sec_gateway.infrastructure.logging.logger import get_json_logger

logger = get_json_logger(__name__)

__all__ = [
    "build_cache_store",
    "build_rate_governor",
    "build_resource_gateway",
    "close_resource_gateway",
    "get_resource_gateway",
    "load_sec_settings",
]


def load_sec_settings(settings: Settings) -> SecSettings:
    """Project the SEC client settings out of the application settings."""
    return SecSettings(
        base_url=settings.sec_base_url,
        user_agent=settings.sec_user_agent,
        timeout_s=settings.sec_timeout_s,
        feed_path=settings.sec_feed_path,
        allowed_domain=settings.sec_allowed_domain,
    )


def build_cache_store(settings: Settings) -> CacheStorePort:
    """Return the cache store selected by ``settings.cache_backend``."""
    if settings.cache_backend == "memory":
        return InMemoryCacheStore()
    return RedisCacheStore(namespace=settings.cache_namespace)


def build_rate_governor(settings: Settings) -> FixedWindowRateGovernor:
    """Return the process-wide inbound rate governor."""
    return FixedWindowRateGovernor(
        limit=settings.rate_limit_requests,
        window_s=settings.rate_limit_window_seconds,
    )


def build_resource_gateway(
    settings: Settings,
    *,
    http_client: httpx.AsyncClient | None = None,
    cache: CacheStorePort | None = None,
) -> ResourceGateway:
    """Assemble the gateway from settings.

    Args:
        settings: Application settings.
        http_client: Shared HTTP client; the SEC client creates its own if omitted.
        cache: Cache override; defaults to :func:`build_cache_store`.
    """
    sec_settings = load_sec_settings(settings)
    client = SecClient(sec_settings, http=http_client)
    store = cache if cache is not None else build_cache_store(settings)
    logger.info(
        "gateway.wired",
        extra={
            "extra": {
                "cache_backend": settings.cache_backend,
                "sec_base_url": sec_settings.base_url,
            }
        },
    )
    return ResourceGateway(client, store, provider_domain=sec_settings.allowed_domain)


def get_resource_gateway(request: Request) -> ResourceGateway:
    """FastAPI provider returning the application's gateway.

    When the lifespan did not run, the gateway and a shared HTTP client are
    built on first use and kept on ``app.state`` so
    :func:`close_resource_gateway` can release them.
    """
    state = request.app.state
    gateway: ResourceGateway | None = getattr(state, "resource_gateway", None)
    if gateway is None:
        settings: Settings = getattr(state, "settings", None) or get_settings()
        http_client: httpx.AsyncClient | None = getattr(state, "http_client", None)
        if http_client is None or http_client.is_closed:
            http_client = httpx.AsyncClient(timeout=settings.sec_timeout_s)
            state.http_client = http_client
        gateway = build_resource_gateway(settings, http_client=http_client)
        state.resource_gateway = gateway
    return gateway


async def close_resource_gateway(app: FastAPI) -> None:
    """Drop the gateway from ``app.state`` and close its shared HTTP client."""
    state = app.state
    http_client: httpx.AsyncClient | None = getattr(state, "http_client", None)
    state.resource_gateway = None
    state.http_client = None
    if http_client is not None and not http_client.is_closed:
        await http_client.aclose()
