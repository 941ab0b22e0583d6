# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Response envelope DTOs (Application Layer).

Purpose:
    The uniform shape returned by every gateway operation, plus the closed set
    of typed payload variants (one per resource class).

Shape:
    Success: ``{"success": true,  "source": "sec.gov", "data": {...}}``
    Failure: ``{"success": false, "source": "sec.gov", "error": "...", "code": "..."}``

Layer: application/schemas/dto
"""

from __future__ import annotations

from typing import Annotated, Any, Final, Literal

from pydantic import Field, model_validator

from sec_gateway.application.schemas.dto.base import BaseDTO
from sec_gateway.domain.enums.error_kind import ErrorKind

__all__ = [
    "SOURCE",
    "DocumentPayload",
    "FeedPayload",
    "ResourcePayload",
    "ResponseEnvelope",
    "SubmissionsPayload",
]

SOURCE: Final[str] = "sec.gov"


class FeedPayload(BaseDTO):
    """Filings RSS feed, returned verbatim."""

    kind: Literal["feed"] = "feed"
    url: str
    content_type: str
    content: str


class SubmissionsPayload(BaseDTO):
    """Company submissions document for one CIK."""

    kind: Literal["submissions"] = "submissions"
    cik: str = Field(..., description="10-digit zero-padded CIK.")
    name: str | None = None
    tickers: list[str] = Field(default_factory=list)
    submissions: dict[str, Any] = Field(
        ..., description="Provider submissions JSON, unmodified."
    )


class DocumentPayload(BaseDTO):
    """Arbitrary filing document fetched by absolute URL.

    Binary media types (PDF, images, archives) carry base64 ``content`` and
    ``encoding="base64"``.
    """

    kind: Literal["document"] = "document"
    url: str
    content_type: str
    content: str
    encoding: Literal["utf-8", "base64"] = "utf-8"


ResourcePayload = Annotated[
    FeedPayload | SubmissionsPayload | DocumentPayload,
    Field(discriminator="kind"),
]


class ResponseEnvelope(BaseDTO):
    """Uniform success/error wrapper.

    Exactly one of ``data`` and ``error`` is populated; ``code`` travels with
    ``error``.
    """

    success: bool
    source: Literal["sec.gov"] = "sec.gov"
    data: ResourcePayload | None = None
    error: str | None = None
    code: ErrorKind | None = None

    @model_validator(mode="after")
    def _exactly_one_of_data_or_error(self) -> ResponseEnvelope:
        if self.success:
            if self.data is None or self.error is not None or self.code is not None:
                raise ValueError("success envelope requires data and forbids error/code")
        elif self.data is not None or not self.error or self.code is None:
            raise ValueError("failure envelope requires error and code and forbids data")
        return self

    @classmethod
    def ok(cls, data: FeedPayload | SubmissionsPayload | DocumentPayload) -> ResponseEnvelope:
        """Build a success envelope."""
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, kind: ErrorKind, message: str) -> ResponseEnvelope:
        """Build a failure envelope."""
        return cls(success=False, error=message, code=kind)

    def to_json(self) -> str:
        """Serialize for storage, omitting absent fields."""
        return self.model_dump_json(exclude_none=True)

    @classmethod
    def from_json(cls, raw: str | bytes) -> ResponseEnvelope:
        """Deserialize an envelope previously produced by :meth:`to_json`."""
        return cls.model_validate_json(raw)
