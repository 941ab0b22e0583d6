# src/sec_gateway/adapters/routers/gateway_router.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""
SEC Gateway Router (Adapters Layer)

Purpose:
    Expose the three cached provider resources:

      * ``GET /rss-feed``             : filings RSS feed (TTL 15 min)
      * ``GET /submissions/{cik}``    : company submissions (TTL 24 h)
      * ``GET /document?url=...``     : arbitrary filing document (TTL 1 h)

    Every route returns the gateway envelope. Failures keep the envelope shape
    and carry an HTTP status derived from the failure kind.

Layer:
    adapters/routers
"""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Path, Query, Request
from fastapi.responses import JSONResponse

from sec_gateway.adapters.presenters.envelope_presenter import EnvelopePresenter
from sec_gateway.adapters.schemas.http.envelopes import ErrorEnvelope, GatewayEnvelope
from sec_gateway.application.schemas.dto.envelope import ResponseEnvelope
from sec_gateway.application.use_cases.resources.fetch_resource import ResourceGateway
from sec_gateway.dependencies.gateway import get_resource_gateway
from sec_gateway.domain.entities.resource_request import ResourceClass, ttl_for

router = APIRouter(tags=["SEC"])
presenter = EnvelopePresenter()

_FAILURE_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": GatewayEnvelope, "description": "Invalid identifier or rejected request."},
    403: {"model": GatewayEnvelope, "description": "Provider denied access."},
    404: {"model": GatewayEnvelope, "description": "Provider resource not found."},
    429: {"model": ErrorEnvelope, "description": "Gateway request budget exhausted."},
    502: {"model": GatewayEnvelope, "description": "Provider failure."},
    503: {"model": GatewayEnvelope, "description": "Provider rate limit exceeded."},
    504: {"model": GatewayEnvelope, "description": "Provider unreachable or timed out."},
}

GatewayDep = Annotated[ResourceGateway, Depends(get_resource_gateway)]


def _render(
    request: Request, envelope: ResponseEnvelope, resource_class: ResourceClass
) -> JSONResponse:
    result = presenter.present(
        envelope,
        ttl_seconds=ttl_for(resource_class),
        trace_id=getattr(request.state, "request_id", None),
    )
    return presenter.to_response(result)


@router.get(
    "/rss-feed",
    summary="Filings RSS feed",
    response_model=GatewayEnvelope,
    responses=_FAILURE_RESPONSES,
)
async def get_rss_feed(request: Request, gateway: GatewayDep) -> JSONResponse:
    """Return the SEC filings RSS feed (cached for 15 minutes)."""
    return _render(request, await gateway.get_feed(), ResourceClass.FEED)


@router.get(
    "/submissions/{cik}",
    summary="Company submissions by CIK",
    response_model=GatewayEnvelope,
    responses=_FAILURE_RESPONSES,
)
async def get_submissions(
    request: Request,
    gateway: GatewayDep,
    cik: Annotated[str, Path(description="Numeric CIK, 1-10 digits; zero-padded upstream.")],
) -> JSONResponse:
    """Return company submissions (cached for 24 hours)."""
    return _render(request, await gateway.get_submissions(cik), ResourceClass.SUBMISSIONS)


@router.get(
    "/document",
    summary="Filing document by URL",
    response_model=GatewayEnvelope,
    responses=_FAILURE_RESPONSES,
)
async def get_document(
    request: Request,
    gateway: GatewayDep,
    url: Annotated[
        str | None,
        Query(description="Absolute http(s) URL on the SEC domain."),
    ] = None,
) -> JSONResponse:
    """Return an arbitrary filing document (cached for 1 hour)."""
    return _render(request, await gateway.get_document(url), ResourceClass.DOCUMENT)
