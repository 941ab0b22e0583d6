# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""In-memory cache store (tests and local development).

Implements :class:`CacheStorePort` with per-entry expiry against a monotonic
clock. Expired entries are dropped lazily on read. Methods never await while
touching the dict, so each get/set is atomic on the event loop.
"""

from __future__ import annotations

import time
from collections.abc import Callable

from sec_gateway.application.interfaces.cache_port import CacheStorePort


class InMemoryCacheStore(CacheStorePort):
    """Process-local TTL cache."""

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._data: dict[str, tuple[str, float]] = {}

    async def get(self, key: str) -> str | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            self._data.pop(key, None)
            return None
        return value

    async def set(self, key: str, value: str, *, ttl: int) -> bool:
        if ttl <= 0:
            return False
        self._data[key] = (value, self._clock() + ttl)
        return True

    def clear(self) -> None:
        """Drop every entry."""
        self._data.clear()
