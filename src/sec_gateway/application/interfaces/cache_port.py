# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Application Interface: Cache Store Port.

Synopsis:
    Minimal string key/value cache with TTL semantics used by the resource
    gateway. Enables swapping Redis, in-memory, or other cache implementations.

Layer:
    application/interfaces
"""

from __future__ import annotations

from typing import Protocol


class CacheStorePort(Protocol):
    """Fail-open key/value store.

    Implementations must never raise. A store that cannot be reached behaves
    as an empty cache on reads and as a no-op on writes.
    """

    async def get(self, key: str) -> str | None:
        """Return the stored value, or ``None`` when absent or unreachable.

        Args:
            key: Cache key (without any namespace prefix).
        """

    async def set(self, key: str, value: str, *, ttl: int) -> bool:
        """Store ``value`` under ``key`` for ``ttl`` seconds.

        Args:
            key: Cache key (without any namespace prefix).
            value: Serialized payload.
            ttl: Time-to-live in seconds.

        Returns:
            ``True`` if the value was stored, ``False`` if the write was skipped
            or failed.
        """
