# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Inbound Rate Limit Middleware (process-wide fixed window).

Summary:
    Consults a single :class:`FixedWindowRateGovernor` before any gateway route
    runs. Denied requests get an immediate 429 without touching the cache or
    the provider. The budget is shared by every caller and every resource.

Scope:
    Only paths under the gateway prefix are governed. Health probes and the
    metrics scrape endpoint are never limited.

Emitted headers:
    X-RateLimit-Limit, X-RateLimit-Remaining, X-RateLimit-Reset, Retry-After (on 429)
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from fastapi import Request
from starlette import status
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from sec_gateway.application.services.rate_governor import FixedWindowRateGovernor
from sec_gateway.infrastructure.http.errors import error_envelope
from sec_gateway.infrastructure.logging.logger import get_json_logger
from sec_gateway.infrastructure.observability.metrics import get_rate_limit_decisions_total

logger = get_json_logger(__name__)

RATE_LIMITED_MESSAGE = "Too many requests. The gateway allows {limit} requests per window."


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Fixed-window admission control for gateway routes.

    Args:
        app: ASGI application.
        governor: Shared governor instance.
        path_prefix: Only paths starting with this prefix are governed.
        exempt_prefixes: Paths under these prefixes are never governed.
    """

    def __init__(
        self,
        app: ASGIApp,
        governor: FixedWindowRateGovernor,
        *,
        path_prefix: str = "/api",
        exempt_prefixes: Sequence[str] = ("/api/health",),
    ) -> None:
        super().__init__(app)
        self.governor = governor
        self.path_prefix = path_prefix.rstrip("/")
        self.exempt_prefixes = tuple(exempt_prefixes)

    def _governed(self, path: str) -> bool:
        if any(path.startswith(p) for p in self.exempt_prefixes):
            return False
        if not self.path_prefix:
            return path != "/metrics"
        return path == self.path_prefix or path.startswith(self.path_prefix + "/")

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not self._governed(request.url.path):
            return await call_next(request)

        limit = self.governor.limit
        if not self.governor.admit():
            get_rate_limit_decisions_total().labels(decision="denied").inc()
            retry_after = max(1, math.ceil(self.governor.retry_after()))
            logger.info(
                "rate_limit.denied",
                extra={"extra": {"path": request.url.path, "retry_after_s": retry_after}},
            )
            limited = JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content=error_envelope(
                    code="RATE_LIMITED",
                    http_status=status.HTTP_429_TOO_MANY_REQUESTS,
                    message=RATE_LIMITED_MESSAGE.format(limit=limit),
                    trace_id=getattr(request.state, "request_id", None),
                ),
            )
            limited.headers.update(
                {
                    "Retry-After": str(retry_after),
                    "X-RateLimit-Limit": str(limit),
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Reset": str(retry_after),
                }
            )
            return limited

        get_rate_limit_decisions_total().labels(decision="admitted").inc()
        remaining = self.governor.remaining()
        reset = math.ceil(self.governor.retry_after())

        response: Response = await call_next(request)
        response.headers.update(
            {
                "X-RateLimit-Limit": str(limit),
                "X-RateLimit-Remaining": str(remaining),
                "X-RateLimit-Reset": str(reset),
            }
        )
        return response
