# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""
Resource validation and cache-key derivation.

Purpose:
    Validate caller-supplied identifiers and derive deterministic cache keys so
    that equivalent logical requests always share one cache entry.

Layer:
    domain/services

Key policy:
    * ``feed``
    * ``submissions:<10-digit zero-padded CIK>``
    * ``document:<url path>`` (scheme, host and query string are ignored)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final
from urllib.parse import urlsplit

from sec_gateway.domain.entities.resource_request import ResourceClass, ResourceRequest
from sec_gateway.domain.exceptions.sec import SecValidationError

__all__ = [
    "CIK_LENGTH",
    "DEFAULT_PROVIDER_DOMAIN",
    "ValidatedRequest",
    "derive_cache_key",
    "is_provider_host",
    "normalize_cik",
    "validate_document_url",
    "validate_request",
]

CIK_LENGTH: Final[int] = 10
DEFAULT_PROVIDER_DOMAIN: Final[str] = "sec.gov"
_ALLOWED_SCHEMES: Final[frozenset[str]] = frozenset({"http", "https"})


@dataclass(frozen=True, slots=True)
class ValidatedRequest:
    """A request whose identifier passed validation.

    Attributes:
        request: Original request.
        normalized_identifier: Padded CIK, absolute document URL, or ``None``.
        cache_key: Derived cache key (without any store namespace).
    """

    request: ResourceRequest
    normalized_identifier: str | None
    cache_key: str

    @property
    def resource_class(self) -> ResourceClass:
        return self.request.resource_class


def normalize_cik(cik: str | None) -> str:
    """Validate a CIK and return it zero-padded to 10 digits.

    Raises:
        SecValidationError: If the CIK is missing, not all digits, or longer
            than 10 digits.
    """
    raw = (cik or "").strip()
    if not raw or not raw.isascii() or not raw.isdigit():
        raise SecValidationError(
            "Invalid CIK format. CIK must be numeric.",
            details={"cik": cik},
        )
    if len(raw) > CIK_LENGTH:
        raise SecValidationError(
            f"Invalid CIK format. CIK must be at most {CIK_LENGTH} digits.",
            details={"cik": cik},
        )
    return raw.zfill(CIK_LENGTH)


def is_provider_host(host: str | None, domain: str = DEFAULT_PROVIDER_DOMAIN) -> bool:
    """Return True if ``host`` is ``domain`` or one of its subdomains."""
    if not host:
        return False
    host = host.lower().rstrip(".")
    domain = domain.lower()
    return host == domain or host.endswith("." + domain)


def validate_document_url(url: str | None, domain: str = DEFAULT_PROVIDER_DOMAIN) -> str:
    """Validate a document URL and return it stripped of surrounding whitespace.

    Raises:
        SecValidationError: If the URL is missing, not absolute http(s), or not
            hosted on the provider's domain.
    """
    raw = (url or "").strip()
    if not raw:
        raise SecValidationError("Document URL is required.")

    parts = urlsplit(raw)
    if parts.scheme.lower() not in _ALLOWED_SCHEMES or not parts.netloc:
        raise SecValidationError(
            "Document URL must be an absolute http(s) URL.",
            details={"url": raw},
        )
    if not is_provider_host(parts.hostname, domain):
        raise SecValidationError(
            f"Document URL must reference the {domain} domain.",
            details={"url": raw, "host": parts.hostname},
        )
    return raw


def derive_cache_key(resource_class: ResourceClass, normalized_identifier: str | None) -> str:
    """Derive the cache key for an already-normalized identifier."""
    if resource_class is ResourceClass.FEED:
        return "feed"
    if resource_class is ResourceClass.SUBMISSIONS:
        return f"submissions:{normalized_identifier}"
    path = urlsplit(normalized_identifier or "").path or "/"
    return f"document:{path}"


def validate_request(
    request: ResourceRequest,
    *,
    provider_domain: str = DEFAULT_PROVIDER_DOMAIN,
) -> ValidatedRequest:
    """Validate a request and derive its cache key.

    Args:
        request: Incoming resource request.
        provider_domain: Domain that document URLs must belong to.

    Returns:
        ValidatedRequest: Normalized identifier plus cache key.

    Raises:
        SecValidationError: If the identifier does not fit its class.
    """
    if request.resource_class is ResourceClass.FEED:
        normalized: str | None = None
    elif request.resource_class is ResourceClass.SUBMISSIONS:
        normalized = normalize_cik(request.identifier)
    else:
        normalized = validate_document_url(request.identifier, provider_domain)

    return ValidatedRequest(
        request=request,
        normalized_identifier=normalized,
        cache_key=derive_cache_key(request.resource_class, normalized),
    )
