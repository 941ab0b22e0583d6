# src/sec_gateway/adapters/routers/metrics_router.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Prometheus scrape endpoint (``/metrics``).

Gateway collectors are created lazily; this route touches them first so the
series exist on a cold scrape.
"""

from __future__ import annotations

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from sec_gateway.infrastructure.observability.metrics import (
    get_cache_operations_total,
    get_rate_limit_decisions_total,
    get_readyz_redis_latency_seconds,
    get_upstream_errors_total,
    get_upstream_latency_seconds,
)

router = APIRouter()


@router.get("/metrics", include_in_schema=False)
async def metrics_probe() -> Response:
    """Expose Prometheus metrics in text format."""
    get_cache_operations_total()
    get_upstream_latency_seconds()
    get_upstream_errors_total()
    get_rate_limit_decisions_total()
    get_readyz_redis_latency_seconds()
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
