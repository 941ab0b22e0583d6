# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""HTTP Envelopes (Adapters Layer).

Purpose:
    Transport-facing shapes published in OpenAPI:

      - ``GatewayEnvelope``: ``{success, source, data | error, code}`` returned
        by every resource route.
      - ``ErrorEnvelope``: ``{"error": ErrorObject}`` used for requests rejected
        before reaching a resource route (local rate limit, malformed request,
        unhandled failures).
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import Field

from sec_gateway.adapters.schemas.http.base import BaseHTTPSchema

__all__ = [
    "DocumentData",
    "ErrorEnvelope",
    "ErrorObject",
    "FeedData",
    "GatewayEnvelope",
    "SubmissionsData",
]


class ErrorObject(BaseHTTPSchema):
    """Structured error object inside :class:`ErrorEnvelope`.

    Codes are UPPER_SNAKE_CASE and stable across releases (``RATE_LIMITED``,
    ``VALIDATION_ERROR``, ``HTTP_ERROR``, ``INTERNAL_ERROR``).
    """

    code: str = Field(..., description="Stable machine-readable error code.")
    http_status: int = Field(..., description="Associated HTTP status.")
    message: str = Field(..., description="Human-readable error description.")
    details: dict[str, Any] | None = Field(
        default=None,
        description="Optional structured details safe for clients.",
    )
    trace_id: str | None = Field(default=None, description="Request correlation identifier.")


class ErrorEnvelope(BaseHTTPSchema):
    """Error envelope: ``{"error": ErrorObject}``."""

    error: ErrorObject


class FeedData(BaseHTTPSchema):
    """Filings RSS feed body."""

    kind: Literal["feed"] = "feed"
    url: str
    content_type: str
    content: str = Field(..., description="Feed XML, unmodified.")


class SubmissionsData(BaseHTTPSchema):
    """Company submissions for one CIK."""

    kind: Literal["submissions"] = "submissions"
    cik: str = Field(..., examples=["0000320193"])
    name: str | None = Field(default=None, examples=["Apple Inc."])
    tickers: list[str] = Field(default_factory=list, examples=[["AAPL"]])
    submissions: dict[str, Any] = Field(..., description="Provider submissions JSON.")


class DocumentData(BaseHTTPSchema):
    """Filing document body."""

    kind: Literal["document"] = "document"
    url: str
    content_type: str
    content: str
    encoding: Literal["utf-8", "base64"] = "utf-8"


GatewayData = Annotated[
    FeedData | SubmissionsData | DocumentData,
    Field(discriminator="kind"),
]


class GatewayEnvelope(BaseHTTPSchema):
    """Uniform gateway response: success with ``data`` or failure with ``error``."""

    success: bool
    source: Literal["sec.gov"] = "sec.gov"
    data: GatewayData | None = None
    error: str | None = Field(default=None, examples=["Invalid CIK format. CIK must be numeric."])
    code: str | None = Field(default=None, examples=["VALIDATION_ERROR"])
