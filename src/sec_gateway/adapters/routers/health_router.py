# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Health endpoints (Adapters Layer).

Purpose:
    ``/health`` is a cheap liveness signal with no external I/O.
    ``/health/readiness`` probes the cache dependency and reports ``degraded``
    (HTTP 503) when it is unreachable.

Design:
    * Adapters boundary respected: the probe is read from ``app.state`` (wired
      at app creation) and can be swapped through ``dependency_overrides``.
    * Health routes are exempt from the inbound rate governor.
"""

from __future__ import annotations

import asyncio
import typing as t
from datetime import UTC, datetime
from enum import Enum
from typing import Annotated, Protocol

from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import Field

from sec_gateway.adapters.schemas.http.base import BaseHTTPSchema
from sec_gateway.infrastructure.logging.logger import get_json_logger
from sec_gateway.infrastructure.observability.metrics import get_readyz_redis_latency_seconds

logger = get_json_logger(__name__)
router = APIRouter(tags=["Health"])


class HealthState(str, Enum):
    """Overall readiness classification."""

    OK = "ok"
    DEGRADED = "degraded"


class HealthResponse(BaseHTTPSchema):
    """Liveness response."""

    status: t.Literal["healthy"] = "healthy"
    service: str = Field(..., examples=["SEC Gateway"])
    timestamp: datetime


class CheckResult(BaseHTTPSchema):
    """Result of a single dependency check."""

    name: str = Field(..., examples=["redis"])
    status: t.Literal["ok", "down"]
    detail: str | None = None
    duration_ms: float


class ReadinessResponse(BaseHTTPSchema):
    """Aggregated readiness response."""

    status: HealthState
    checks: list[CheckResult] = Field(default_factory=list)


class HealthProbe(Protocol):
    """Non-destructive dependency check returning ``(is_ok, detail)``."""

    async def redis(self) -> tuple[bool, str | None]: ...


class NoopProbe:
    """Reports failure until a real probe is wired."""

    async def redis(self) -> tuple[bool, str | None]:
        return False, "no cache probe configured"


def get_health_probe(request: Request) -> HealthProbe:
    """Return the probe wired on the application, or :class:`NoopProbe`."""
    probe: HealthProbe | None = getattr(request.app.state, "health_probe", None)
    return probe if probe is not None else NoopProbe()


@router.get(
    "/health",
    summary="Liveness",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
)
async def health(request: Request) -> HealthResponse:
    """Return a fast liveness signal."""
    settings = getattr(request.app.state, "settings", None)
    service = getattr(settings, "service_name", None) or "SEC Gateway"
    return HealthResponse(service=service, timestamp=datetime.now(UTC))


@router.get(
    "/health/readiness",
    summary="Readiness",
    response_model=ReadinessResponse,
    responses={503: {"description": "Service degraded", "model": ReadinessResponse}},
)
async def readiness(
    response: Response,
    probe: Annotated[HealthProbe, Depends(get_health_probe)],
) -> ReadinessResponse:
    """Probe the cache dependency and report readiness."""
    loop = asyncio.get_running_loop()
    start = loop.time()
    ok, detail = await probe.redis()
    duration_ms = (loop.time() - start) * 1000.0
    get_readyz_redis_latency_seconds().observe(duration_ms / 1000.0)

    check = CheckResult(
        name="redis",
        status="ok" if ok else "down",
        detail=detail,
        duration_ms=duration_ms,
    )
    if not ok:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    payload = ReadinessResponse(
        status=HealthState.OK if ok else HealthState.DEGRADED,
        checks=[check],
    )
    logger.info(
        "readiness_probe",
        extra={"extra": {"overall": payload.status, "checks": [check.model_dump_http()]}},
    )
    return payload
