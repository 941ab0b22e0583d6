# src/sec_gateway/infrastructure/caching/redis_client.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Async Redis client factory."""

from __future__ import annotations

from contextlib import suppress
from typing import Any, Protocol, cast, runtime_checkable

import redis.asyncio as aioredis

from sec_gateway.config.settings import Settings, get_settings

__all__ = [
    "RedisClient",
    "close_redis",
    "get_redis_client",
    "init_redis",
]


@runtime_checkable
class RedisClient(Protocol):
    """Minimal async Redis protocol used by the gateway."""

    async def ping(self) -> Any: ...
    async def aclose(self) -> None: ...

    async def get(self, key: str) -> Any: ...
    async def setex(self, name: str, time: int, value: Any) -> Any: ...


_client: RedisClient | None = None


def _create_aioredis_client(settings: Settings) -> RedisClient:
    """Build the concrete asyncio Redis client from settings."""
    client = aioredis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        health_check_interval=settings.redis_health_check_interval_s,
        socket_timeout=settings.redis_socket_timeout_s,
        socket_connect_timeout=settings.redis_socket_connect_timeout_s,
    )
    return cast(RedisClient, client)


def init_redis(settings: Settings) -> None:
    """Initialize the global async Redis client (idempotent).

    ``from_url`` connects lazily, so an unreachable server does not fail here.
    """
    global _client
    if _client is not None:
        return
    _client = _create_aioredis_client(settings)


async def close_redis() -> None:
    """Close the global Redis client at shutdown."""
    global _client
    if _client is not None:
        with suppress(RuntimeError):
            await _client.aclose()
        _client = None


def get_redis_client() -> RedisClient:
    """Return the initialized Redis client (lazy-inits in tests)."""
    if _client is None:
        init_redis(get_settings())
    if _client is None:
        raise RuntimeError("Redis client not initialized (init_redis failed)")
    return _client
