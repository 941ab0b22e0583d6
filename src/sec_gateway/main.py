# src/sec_gateway/main.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""
Application Entry (Adapters Bootstrap)

Synopsis:
    FastAPI bootstrap that wires middleware, exception handlers and routers.
    Provides an application factory (`create_app`) and a module-level eager
    app (`app`) for ASGI servers and tooling.

Design:
    • Bootstrap only (no business logic).
    • Lifespan initializes Redis/HTTP/gateway and tears them down safely.
    • Gateway routes live under ``API_PREFIX`` (default ``/api``) behind the
      process-wide rate governor; ``/metrics`` is mounted at the root.
    • Root JSON logging configured at import time.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.gzip import GZipMiddleware
from starlette.requests import Request
from starlette.responses import Response as StarletteResponse

from sec_gateway.adapters.routers.gateway_router import router as gateway_router
from sec_gateway.adapters.routers.health_router import router as health_router
from sec_gateway.adapters.routers.metrics_router import router as metrics_router
from sec_gateway.config.settings import Settings, get_settings
from sec_gateway.dependencies.core.bootstrap import bootstrap
from sec_gateway.dependencies.gateway import build_rate_governor, close_resource_gateway
from sec_gateway.dependencies.health import CacheHealthProbe
from sec_gateway.infrastructure.http.errors import (
    handle_http_exception,
    handle_unhandled_exception,
    handle_validation_error,
)
from sec_gateway.infrastructure.logging.logger import (
    configure_root_logging,
    get_json_logger,
)
from sec_gateway.infrastructure.middleware.rate_limit import RateLimitMiddleware
from sec_gateway.infrastructure.middleware.request_id import RequestIdMiddleware

# -----------------------------------------------------------------------------
# Logging
# -----------------------------------------------------------------------------
configure_root_logging()
logger = get_json_logger(__name__)


def _stable_operation_id(route: APIRoute) -> str:
    """Deterministic operationId: ``"<methods>_<path>"`` with braces removed."""
    methods = ",".join(sorted(route.methods or []))
    path = route.path_format.replace("/", "_").replace("{", "").replace("}", "")
    return f"{methods.lower()}_{path.lower()}"


# -----------------------------------------------------------------------------
# Lifespan
# -----------------------------------------------------------------------------
@asynccontextmanager
async def runtime_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Expose bootstrapped infrastructure on ``app.state`` while serving."""
    async with bootstrap(app) as state:
        app.state.settings = state.settings
        app.state.http_client = state.http_client
        app.state.resource_gateway = state.resource_gateway
        try:
            yield
        finally:
            await close_resource_gateway(app)


# -----------------------------------------------------------------------------
# Middleware & CORS
# -----------------------------------------------------------------------------
def _attach_middlewares(app: FastAPI, settings: Settings) -> None:
    """Attach middleware. The last one added runs first.

    Effective order on the way in:
        1. RequestIdMiddleware (correlation id for logs and 429 bodies)
        2. RateLimitMiddleware (process-wide fixed window, gateway routes only)
        3. GZipMiddleware (response compression)
    """
    app.add_middleware(GZipMiddleware, minimum_size=1024)

    if settings.rate_limit_enabled:
        governor = build_rate_governor(settings)
        app.state.rate_governor = governor
        app.add_middleware(
            RateLimitMiddleware,
            governor=governor,
            path_prefix=settings.api_prefix,
            exempt_prefixes=(f"{settings.api_prefix}/health",),
        )
        logger.info(
            "rate_limit_enabled",
            extra={
                "extra": {
                    "requests": settings.rate_limit_requests,
                    "window_s": settings.rate_limit_window_seconds,
                }
            },
        )

    app.add_middleware(RequestIdMiddleware)


def _attach_cors(app: FastAPI, settings: Settings) -> None:
    """Attach CORS middleware; no origins configured means any origin."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins or ["*"],
        allow_credentials=bool(settings.cors_allow_origins),
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=[
            "X-Request-ID",
            "Retry-After",
            "X-RateLimit-Limit",
            "X-RateLimit-Remaining",
            "X-RateLimit-Reset",
        ],
    )


def _patch_exception_handlers(app: FastAPI) -> None:
    """Replace default exception handlers with structured equivalents."""

    async def _http_error_handler(request: Request, exc: Exception) -> StarletteResponse:
        if not isinstance(exc, StarletteHTTPException):
            raise exc
        return await handle_http_exception(request, exc)

    async def _validation_error_handler(request: Request, exc: Exception) -> StarletteResponse:
        if not isinstance(exc, RequestValidationError):
            raise exc
        return await handle_validation_error(request, exc)

    async def _unhandled_error_handler(request: Request, exc: Exception) -> StarletteResponse:
        return await handle_unhandled_exception(request, exc)

    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)


# -----------------------------------------------------------------------------
# App factory
# -----------------------------------------------------------------------------
def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Explicit settings; defaults to :func:`get_settings`.
    """
    settings = settings or get_settings()
    configure_root_logging(settings.log_level)
    service_version = settings.service_version or "0.1.0"

    app = FastAPI(
        title="SEC Gateway",
        version=service_version,
        description="Caching, rate-governed gateway in front of the SEC EDGAR APIs.",
        lifespan=runtime_lifespan,
        generate_unique_id_function=_stable_operation_id,
    )
    app.state.settings = settings
    app.state.health_probe = CacheHealthProbe(settings)

    _patch_exception_handlers(app)
    _attach_middlewares(app, settings)
    _attach_cors(app, settings)

    app.include_router(health_router, prefix=settings.api_prefix)
    app.include_router(gateway_router, prefix=settings.api_prefix)
    app.include_router(metrics_router)

    logger.info(
        "service_startup",
        extra={
            "extra": {
                "service": settings.service_name,
                "env": settings.environment.value,
                "version": service_version,
                "api_prefix": settings.api_prefix,
            }
        },
    )
    return app


# Eager app for ASGI servers and tools.
app: FastAPI = create_app()
