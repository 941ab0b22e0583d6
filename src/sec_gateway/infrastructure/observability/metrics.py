# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Prometheus metrics utilities (registry-aware, hot-reload safe).

Accessors return *singleton* collectors bound to the **current**
``prometheus_client.REGISTRY``:

    - Safe under hot reload and tests that swap the default registry.
    - No duplicate-registration errors.
    - Cache automatically resets when the active registry changes.

Gateway metrics:
    * ``sec_gateway_cache_operations_total{operation, outcome}``
    * ``sec_gateway_upstream_latency_seconds{resource, outcome}``
    * ``sec_gateway_upstream_errors_total{resource, kind}``
    * ``sec_gateway_rate_limit_decisions_total{decision}``
    * ``readyz_redis_latency_seconds``

Example:
    get_cache_operations_total().labels(operation="get", outcome="hit").inc()
"""

from __future__ import annotations

import logging
import threading
from contextlib import suppress
from typing import Final

import prometheus_client as prom
from prometheus_client import Counter, Histogram

__all__ = [
    "get_cache_operations_total",
    "get_rate_limit_decisions_total",
    "get_readyz_redis_latency_seconds",
    "get_upstream_errors_total",
    "get_upstream_latency_seconds",
]

_log = logging.getLogger(__name__)

_BUCKETS: Final[tuple[float, ...]] = (
    0.005,
    0.010,
    0.025,
    0.050,
    0.100,
    0.250,
    0.500,
    1.000,
    2.500,
    5.000,
    10.000,
)

_registry_id: int | None = None
_cache: dict[str, Counter | Histogram] = {}
_lock = threading.RLock()


def _ensure_registry() -> None:
    """Reset caches if the active registry changed."""
    global _registry_id
    with _lock:
        rid = id(prom.REGISTRY)
        if _registry_id != rid:
            _cache.clear()
            _registry_id = rid


def _lookup_existing(name: str, kind: type[Counter] | type[Histogram]) -> Counter | Histogram | None:
    """Return a previously-registered collector of ``kind`` from the active registry."""
    with suppress(Exception):
        mapping = getattr(prom.REGISTRY, "_names_to_collectors", None)
        if isinstance(mapping, dict):
            col = mapping.get(name)
            if isinstance(col, kind):
                return col
    return None


def _get_or_create(
    kind: type[Counter] | type[Histogram],
    name: str,
    help_text: str,
    labelnames: tuple[str, ...] = (),
) -> Counter | Histogram:
    """Get or create a registry-bound collector with stable identity."""
    _ensure_registry()
    with _lock:
        cached = _cache.get(name)
        if isinstance(cached, kind):
            return cached

        existing = _lookup_existing(name, kind)
        if existing is not None:
            _cache[name] = existing
            return existing

        kwargs: dict[str, object] = {"registry": prom.REGISTRY}
        if kind is Histogram:
            kwargs["buckets"] = _BUCKETS
        try:
            col = kind(name, help_text, labelnames, **kwargs)  # type: ignore[arg-type]
        except ValueError as exc:
            if "Duplicated timeseries" in str(exc):
                again = _lookup_existing(name, kind)
                if again is not None:
                    _cache[name] = again
                    return again
            _log.exception("Failed to register Prometheus collector %s", name)
            raise
        _cache[name] = col
        return col


def get_cache_operations_total() -> Counter:
    """Cache operations by operation (get/set) and outcome."""
    col = _get_or_create(
        Counter,
        "sec_gateway_cache_operations",
        "Cache store operations by outcome (hit, miss, error, stored, skipped).",
        ("operation", "outcome"),
    )
    assert isinstance(col, Counter)
    return col


def get_upstream_latency_seconds() -> Histogram:
    """Upstream request latency by resource class and outcome."""
    col = _get_or_create(
        Histogram,
        "sec_gateway_upstream_latency_seconds",
        "Latency of upstream provider requests in seconds.",
        ("resource", "outcome"),
    )
    assert isinstance(col, Histogram)
    return col


def get_upstream_errors_total() -> Counter:
    """Upstream failures by resource class and normalized kind."""
    col = _get_or_create(
        Counter,
        "sec_gateway_upstream_errors",
        "Upstream provider failures by normalized error kind.",
        ("resource", "kind"),
    )
    assert isinstance(col, Counter)
    return col


def get_rate_limit_decisions_total() -> Counter:
    """Rate governor decisions (admitted/denied)."""
    col = _get_or_create(
        Counter,
        "sec_gateway_rate_limit_decisions",
        "Inbound rate governor decisions.",
        ("decision",),
    )
    assert isinstance(col, Counter)
    return col


def get_readyz_redis_latency_seconds() -> Histogram:
    """Redis readiness probe latency."""
    col = _get_or_create(
        Histogram,
        "readyz_redis_latency_seconds",
        "Latency of the Redis readiness probe in seconds.",
    )
    assert isinstance(col, Histogram)
    return col
