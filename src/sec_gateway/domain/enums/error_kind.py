# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""
Gateway error taxonomy.

Purpose:
    Enumerate every failure category the gateway can report to callers. The
    value doubles as the stable machine-readable ``code`` carried on failure
    envelopes.

Layer:
    domain

Notes:
    - Mapping to HTTP status codes happens at the adapters boundary only.
    - ``CACHE_UNAVAILABLE`` is intentionally absent: cache failures degrade to a
      miss or a no-op write and are never surfaced.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Normalized failure categories."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    RATE_LIMITED = "RATE_LIMITED"
    UPSTREAM_NOT_FOUND = "UPSTREAM_NOT_FOUND"
    UPSTREAM_INVALID_REQUEST = "UPSTREAM_INVALID_REQUEST"
    UPSTREAM_FORBIDDEN = "UPSTREAM_FORBIDDEN"
    UPSTREAM_RATE_LIMITED = "UPSTREAM_RATE_LIMITED"
    UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"
    UPSTREAM_UNREACHABLE = "UPSTREAM_UNREACHABLE"
    UPSTREAM_UNKNOWN = "UPSTREAM_UNKNOWN"


def classify_upstream_status(status_code: int) -> ErrorKind:
    """Map a non-success upstream HTTP status to an :class:`ErrorKind`.

    Args:
        status_code: HTTP status returned by the provider.

    Returns:
        ErrorKind: Normalized failure category.
    """
    if status_code == 404:
        return ErrorKind.UPSTREAM_NOT_FOUND
    if status_code == 400:
        return ErrorKind.UPSTREAM_INVALID_REQUEST
    if status_code == 403:
        return ErrorKind.UPSTREAM_FORBIDDEN
    if status_code == 429:
        return ErrorKind.UPSTREAM_RATE_LIMITED
    if 500 <= status_code < 600:
        return ErrorKind.UPSTREAM_UNAVAILABLE
    return ErrorKind.UPSTREAM_UNKNOWN
