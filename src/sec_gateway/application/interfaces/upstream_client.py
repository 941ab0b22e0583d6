# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Application Interface: Upstream Client Port.

Synopsis:
    Contract for the outbound client that talks to the filings provider. The
    gateway depends on this protocol only, never on the HTTP library.

Layer:
    application/interfaces
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from sec_gateway.domain.services.resource_keys import ValidatedRequest


@dataclass(frozen=True, slots=True)
class UpstreamResponse:
    """Successful provider response.

    Attributes:
        url: Final request URL.
        status_code: HTTP status (2xx).
        content_type: Response media type without parameters.
        text: Decoded body, or base64 text when ``encoding`` is ``"base64"``.
        json_body: Parsed JSON when the body is JSON, else ``None``.
        encoding: ``"utf-8"`` for textual bodies, ``"base64"`` for binary ones.
    """

    url: str
    status_code: int
    content_type: str
    text: str
    json_body: Any | None = None
    encoding: str = "utf-8"


class UpstreamClientPort(Protocol):
    """Outbound provider client."""

    async def fetch(self, request: ValidatedRequest) -> UpstreamResponse:
        """Fetch the resource described by ``request``.

        Raises:
            UpstreamError: For every failure; transport exceptions never escape.
        """
        ...
