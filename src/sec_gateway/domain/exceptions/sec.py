# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""
SEC gateway domain exceptions.

Purpose:
    Provide the two failure families the resource gateway distinguishes:
    caller mistakes (validation) and upstream provider failures.

Layer:
    domain

Notes:
    - Infrastructure translates transport errors into :class:`UpstreamError`;
      httpx types never cross that boundary.
    - ``details`` are never rendered into ``str(exc)`` so internal context does
      not leak into client-facing messages.
"""

from __future__ import annotations

from typing import Any

from sec_gateway.domain.enums.error_kind import ErrorKind
from sec_gateway.domain.exceptions.base import DomainError


class SecValidationError(DomainError):
    """Raised when a caller-supplied identifier is malformed."""

    code = ErrorKind.VALIDATION_ERROR.value

    @property
    def kind(self) -> ErrorKind:
        """Validation failures always carry the same kind."""
        return ErrorKind.VALIDATION_ERROR


class UpstreamError(DomainError):
    """Raised when the provider rejects a request or cannot be reached.

    Args:
        kind: Normalized failure category.
        message: Client-safe message describing the category.
        status_code: Upstream HTTP status, or ``None`` when no response arrived.
        details: Optional diagnostic payload for logs.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=details)
        self.kind = kind
        self.status_code = status_code
        self.code = kind.value
