# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Readiness probes wired to the configured cache backend."""

from __future__ import annotations

from sec_gateway.config.settings import Settings
from sec_gateway.infrastructure.caching.redis_client import get_redis_client


class CacheHealthProbe:
    """Probe the cache dependency.

    The gateway keeps serving through a cache outage, so a failing probe marks
    the service degraded rather than down.
    """

    def __init__(self, settings: Settings) -> None:
        self._backend = settings.cache_backend

    async def redis(self) -> tuple[bool, str | None]:
        if self._backend == "memory":
            return True, "in-memory cache"
        try:
            await get_redis_client().ping()
        except Exception as exc:  # noqa: BLE001 - reported in the readiness body
            return False, f"{type(exc).__name__}: {exc}"
        return True, None
