# src/sec_gateway/dependencies/core/bootstrap.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Core bootstrap for infrastructure (Redis, HTTP, gateway).

This module owns the lifecycle of shared infrastructure used by the FastAPI
app. Configuration is read from Settings and construction is delegated to the
infrastructure modules and :mod:`sec_gateway.dependencies.gateway`.

The single public surface is :func:`bootstrap`, an async context manager that
yields the resolved Settings, the shared HTTP client and the gateway.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import httpx
from fastapi import FastAPI

from sec_gateway.application.use_cases.resources.fetch_resource import ResourceGateway
from sec_gateway.config.settings import Settings, get_settings
from sec_gateway.infrastructure.logging.logger import get_json_logger

logger = get_json_logger(__name__)


@dataclass
class BootstrapState:
    """State yielded by the bootstrap context manager."""

    settings: Settings
    http_client: httpx.AsyncClient
    resource_gateway: ResourceGateway


@asynccontextmanager
async def bootstrap(app: FastAPI) -> AsyncGenerator[BootstrapState, None]:
    """Initialize and teardown shared infrastructure.

    Responsibilities:
        * Resolve settings (``app.state.settings`` wins over the global ones).
        * Initialize the Redis client when the redis cache backend is selected.
        * Create a shared HTTPX AsyncClient and the resource gateway.
        * Close all of the above on exit, even on error.
    """
    settings: Settings = getattr(app.state, "settings", None) or get_settings()
    logger.info("bootstrap.start", extra={"extra": {"cache_backend": settings.cache_backend}})

    # Imported here so tests can monkeypatch module functions.
    import sec_gateway.dependencies.gateway as gateway_deps
    import sec_gateway.infrastructure.caching.redis_client as redis_client

    if settings.cache_backend == "redis":
        redis_client.init_redis(settings)

    http_client = httpx.AsyncClient(timeout=settings.sec_timeout_s)
    gateway = gateway_deps.build_resource_gateway(settings, http_client=http_client)

    state = BootstrapState(settings=settings, http_client=http_client, resource_gateway=gateway)
    try:
        yield state
    finally:
        try:
            await http_client.aclose()
        except Exception:
            logger.exception("bootstrap.http_client_close_failed")

        if settings.cache_backend == "redis":
            try:
                await redis_client.close_redis()
            except Exception:
                logger.exception("bootstrap.redis_close_failed")

        logger.info("bootstrap.stop")
