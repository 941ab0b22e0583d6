# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Gateway envelope presenter.

Purpose:
    Shape :class:`ResponseEnvelope` results into the HTTP envelope, pick the
    status code for failures and attach standard headers.

Responsibilities:
    * Map each :class:`ErrorKind` to a stable HTTP status.
    * Echo ``X-Request-ID`` when known.
    * Advertise ``Cache-Control`` on success using the resource class TTL.

Layer:
    adapters/presenters
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Final

from fastapi import status
from fastapi.responses import JSONResponse

from sec_gateway.adapters.schemas.http.envelopes import GatewayEnvelope
from sec_gateway.application.schemas.dto.envelope import ResponseEnvelope
from sec_gateway.domain.enums.error_kind import ErrorKind

__all__ = ["STATUS_BY_KIND", "EnvelopePresenter", "PresentResult", "status_for"]

STATUS_BY_KIND: Final[Mapping[ErrorKind, int]] = MappingProxyType(
    {
        ErrorKind.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
        ErrorKind.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
        ErrorKind.UPSTREAM_NOT_FOUND: status.HTTP_404_NOT_FOUND,
        ErrorKind.UPSTREAM_INVALID_REQUEST: status.HTTP_400_BAD_REQUEST,
        ErrorKind.UPSTREAM_FORBIDDEN: status.HTTP_403_FORBIDDEN,
        ErrorKind.UPSTREAM_RATE_LIMITED: status.HTTP_503_SERVICE_UNAVAILABLE,
        ErrorKind.UPSTREAM_UNAVAILABLE: status.HTTP_502_BAD_GATEWAY,
        ErrorKind.UPSTREAM_UNREACHABLE: status.HTTP_504_GATEWAY_TIMEOUT,
        ErrorKind.UPSTREAM_UNKNOWN: status.HTTP_502_BAD_GATEWAY,
    }
)


def status_for(kind: ErrorKind | None) -> int:
    """Return the HTTP status for a failure kind (502 when unmapped)."""
    if kind is None:
        return status.HTTP_502_BAD_GATEWAY
    return STATUS_BY_KIND.get(kind, status.HTTP_502_BAD_GATEWAY)


@dataclass(slots=True)
class PresentResult:
    """Presentation result.

    Attributes:
        body: HTTP envelope to return.
        headers: Extra HTTP headers to apply.
        status_code: HTTP status for the response.
    """

    body: GatewayEnvelope
    headers: Mapping[str, str]
    status_code: int


class EnvelopePresenter:
    """Presenter for gateway resource routes."""

    def present(
        self,
        envelope: ResponseEnvelope,
        *,
        ttl_seconds: int | None = None,
        trace_id: str | None = None,
    ) -> PresentResult:
        """Convert an application envelope into an HTTP result."""
        body = GatewayEnvelope.model_validate(envelope.model_dump(mode="json", exclude_none=True))

        headers: dict[str, str] = {}
        if trace_id:
            headers["X-Request-ID"] = trace_id

        if envelope.success:
            if ttl_seconds:
                headers["Cache-Control"] = f"public, max-age={int(ttl_seconds)}"
            return PresentResult(body=body, headers=headers, status_code=status.HTTP_200_OK)

        headers["Cache-Control"] = "no-store"
        return PresentResult(body=body, headers=headers, status_code=status_for(envelope.code))

    @staticmethod
    def to_response(result: PresentResult) -> JSONResponse:
        """Render a result as a JSON response, omitting absent envelope fields."""
        return JSONResponse(
            status_code=result.status_code,
            content=result.body.model_dump_http(exclude_none=True),
            headers=dict(result.headers),
        )
