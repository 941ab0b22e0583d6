# tests/unit/infrastructure/caching/test_redis_cache_store.py
from __future__ import annotations

from typing import Any

import fakeredis.aioredis
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from sec_gateway.infrastructure.caching import redis_client as redis_client_module
from sec_gateway.infrastructure.caching.redis_cache import RedisCacheStore


class _DownRedis:
    """Redis stand-in whose every command fails at the transport level."""

    async def ping(self) -> Any:
        raise RedisConnectionError("connection refused")

    async def aclose(self) -> None:
        return None

    async def get(self, key: str) -> Any:
        raise RedisConnectionError("connection refused")

    async def setex(self, name: str, time: int, value: Any) -> Any:
        raise RedisConnectionError("connection refused")


@pytest.mark.asyncio
async def test_namespaced_key_and_ttl(monkeypatch):
    fake = fakeredis.aioredis.FakeRedis(decode_responses=True)
    monkeypatch.setattr(redis_client_module, "_client", fake)

    store = RedisCacheStore(namespace="sec_gateway:v1")
    assert await store.set("submissions:0000320193", '{"success":true}', ttl=86_400)

    full_key = "sec_gateway:v1:submissions:0000320193"
    assert await fake.get(full_key) == '{"success":true}'
    ttl = await fake.ttl(full_key)
    assert 0 < ttl <= 86_400

    assert await store.get("submissions:0000320193") == '{"success":true}'
    assert await store.get("submissions:0000000001") is None


@pytest.mark.asyncio
async def test_bytes_values_are_decoded():
    fake = fakeredis.aioredis.FakeRedis(decode_responses=False)
    store = RedisCacheStore(namespace="ns", client_factory=lambda: fake)

    await store.set("feed", "<rss/>", ttl=900)

    assert await store.get("feed") == "<rss/>"


@pytest.mark.asyncio
async def test_non_positive_ttl_is_not_stored():
    fake = fakeredis.aioredis.FakeRedis(decode_responses=True)
    store = RedisCacheStore(namespace="ns", client_factory=lambda: fake)

    assert await store.set("feed", "x", ttl=0) is False
    assert await fake.get("ns:feed") is None


@pytest.mark.asyncio
async def test_store_fails_open_when_redis_is_down():
    store = RedisCacheStore(namespace="ns", client_factory=_DownRedis)

    assert await store.get("feed") is None
    assert await store.set("feed", "x", ttl=900) is False


@pytest.mark.asyncio
async def test_socket_errors_also_fail_open():
    class _Broken(_DownRedis):
        async def get(self, key: str) -> Any:
            raise OSError("network unreachable")

    store = RedisCacheStore(namespace="ns", client_factory=_Broken)

    assert await store.get("feed") is None
