# src/sec_gateway/infrastructure/caching/redis_cache.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Fail-open Redis cache store.

Synopsis:
    Thin adapter implementing :class:`CacheStorePort` on top of the shared
    Redis client from ``infrastructure/caching/redis_client.py``.

Design:
    * Keys are namespaced: ``{namespace}:{key}`` (e.g. ``sec_gateway:v1:feed``).
    * Values are opaque strings; serialization belongs to the caller.
    * Writes use ``SETEX`` so the store owns entry lifetime.
    * Fail-open: any Redis or socket error reads as a miss and turns a write
      into a logged no-op. Cache outages degrade to "always fetch upstream".

Layer:
    infrastructure/caching
"""

from __future__ import annotations

from collections.abc import Callable
from contextlib import suppress

from redis.exceptions import RedisError

from sec_gateway.application.interfaces.cache_port import CacheStorePort
from sec_gateway.infrastructure.caching.redis_client import RedisClient, get_redis_client
from sec_gateway.infrastructure.logging.logger import get_json_logger
from sec_gateway.infrastructure.observability.metrics import get_cache_operations_total

__all__ = ["RedisCacheStore"]

logger = get_json_logger(__name__)

_CACHE_ERRORS = (RedisError, OSError)


class RedisCacheStore(CacheStorePort):
    """Redis-backed implementation of the cache store port.

    Args:
        namespace: Prefix applied to all keys to avoid collisions.
        client_factory: Returns the Redis client; defaults to the shared global
            client. Resolved per call so late initialization is honored.
    """

    def __init__(
        self,
        *,
        namespace: str = "sec_gateway:v1",
        client_factory: Callable[[], RedisClient] = get_redis_client,
    ) -> None:
        self._ns = namespace.rstrip(":")
        self._client_factory = client_factory

    def _k(self, key: str) -> str:
        """Build a namespaced key."""
        return f"{self._ns}:{key.lstrip(':')}"

    async def get(self, key: str) -> str | None:
        """Return the cached value, or ``None`` on miss or store failure."""
        full_key = self._k(key)
        try:
            raw = await self._client_factory().get(full_key)
        except _CACHE_ERRORS as exc:
            _count("get", "error")
            logger.warning(
                "cache.get_failed",
                extra={"extra": {"key": full_key, "error": str(exc)}},
            )
            return None

        if raw is None:
            _count("get", "miss")
            return None
        _count("get", "hit")
        if isinstance(raw, bytes):
            return raw.decode("utf-8")
        return str(raw)

    async def set(self, key: str, value: str, *, ttl: int) -> bool:
        """Store ``value`` with ``ttl`` seconds; never raises."""
        if ttl <= 0:
            _count("set", "skipped")
            return False

        full_key = self._k(key)
        try:
            await self._client_factory().setex(full_key, ttl, value)
        except _CACHE_ERRORS as exc:
            _count("set", "error")
            logger.warning(
                "cache.set_failed",
                extra={"extra": {"key": full_key, "ttl": ttl, "error": str(exc)}},
            )
            return False

        _count("set", "stored")
        return True


def _count(operation: str, outcome: str) -> None:
    with suppress(Exception):
        get_cache_operations_total().labels(operation=operation, outcome=outcome).inc()
