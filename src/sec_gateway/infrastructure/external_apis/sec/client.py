# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""SEC Transport Client: async, instrumented, bounded.

This transport is framework-agnostic and provides:

* Async HTTP (httpx) with a per-request timeout.
* The identifying ``User-Agent`` required by the SEC fair-access policy.
* Deterministic mapping of every failure to :class:`UpstreamError`.
* Prometheus-style latency and error metrics.

Endpoints:
    * feed: ``{base_url}{feed_path}``
    * submissions: ``{base_url}/submissions/CIK##########.json``
    * document: the caller-supplied absolute URL (base URL is not applied)

Notes:
    * No automatic retries: every failure surfaces once per call.
    * Redirects are followed only while they stay on the provider domain.
    * Caller-facing exceptions are always :class:`UpstreamError`; httpx types
      are never allowed to cross the boundary.
"""

from __future__ import annotations

import base64
import time
from contextlib import suppress
from typing import Any, Final

import httpx

from sec_gateway.application.interfaces.upstream_client import UpstreamResponse
from sec_gateway.domain.entities.resource_request import ResourceClass
from sec_gateway.domain.enums.error_kind import ErrorKind, classify_upstream_status
from sec_gateway.domain.exceptions.sec import UpstreamError
from sec_gateway.domain.services.resource_keys import ValidatedRequest, is_provider_host
from sec_gateway.infrastructure.external_apis.sec.settings import SecSettings
from sec_gateway.infrastructure.logging.logger import get_json_logger, get_request_id
from sec_gateway.infrastructure.observability.metrics import (
    get_upstream_errors_total,
    get_upstream_latency_seconds,
)

logger = get_json_logger(__name__)

_MAX_REDIRECTS: Final[int] = 5
_TEXTUAL_TYPES: Final[frozenset[str]] = frozenset(
    {"application/json", "application/xml", "application/javascript"}
)

_STATUS_MESSAGES: Final[dict[ErrorKind, str]] = {
    ErrorKind.UPSTREAM_NOT_FOUND: "SEC resource not found.",
    ErrorKind.UPSTREAM_INVALID_REQUEST: "SEC rejected the request as invalid.",
    ErrorKind.UPSTREAM_FORBIDDEN: "SEC denied access to the requested resource.",
    ErrorKind.UPSTREAM_RATE_LIMITED: "SEC rate limit exceeded.",
    ErrorKind.UPSTREAM_UNAVAILABLE: "SEC upstream unavailable.",
}


def _is_textual(content_type: str) -> bool:
    """Return True for media types whose body is safe to decode as text."""
    return (
        content_type.startswith("text/")
        or content_type in _TEXTUAL_TYPES
        or content_type.endswith(("+xml", "+json"))
    )


class SecClient:
    """Transport client for SEC EDGAR resources."""

    def __init__(
        self,
        settings: SecSettings,
        *,
        http: httpx.AsyncClient | None = None,
        timeout_s: float | None = None,
    ) -> None:
        """Initialize the transport client.

        Args:
            settings: Provider settings.
            http: Optional shared ``httpx.AsyncClient``. If omitted, a client
                is created and owned by this instance.
            timeout_s: Optional per-request timeout override in seconds.
        """
        self._settings = settings
        self._base_url = str(settings.base_url).rstrip("/")
        self._timeout = float(timeout_s if timeout_s is not None else settings.timeout_s)
        self._headers = {
            "User-Agent": settings.user_agent,
            "Accept-Encoding": "gzip, deflate",
        }
        self._owns_client = http is None
        self._client = http or httpx.AsyncClient(timeout=self._timeout)

        self._latency = get_upstream_latency_seconds()
        self._errors = get_upstream_errors_total()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance owns it."""
        if self._owns_client and not self._client.is_closed:
            await self._client.aclose()

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def build_url(self, request: ValidatedRequest) -> str:
        """Return the absolute upstream URL for a validated request."""
        resource_class = request.resource_class
        if resource_class is ResourceClass.FEED:
            return f"{self._base_url}{self._settings.feed_path}"
        if resource_class is ResourceClass.SUBMISSIONS:
            return f"{self._base_url}/submissions/CIK{request.normalized_identifier}.json"
        # Documents are addressed by the caller's absolute URL.
        return str(request.normalized_identifier)

    async def fetch(self, request: ValidatedRequest) -> UpstreamResponse:
        """Fetch a resource from the SEC.

        Raises:
            UpstreamError: On any non-2xx status, transport failure or timeout,
                or an undecodable submissions payload.
        """
        resource = request.resource_class.value
        url = self.build_url(request)
        start = time.perf_counter()
        outcome = "success"
        try:
            response = await self._get(url, resource=resource)
            return self._handle_response(response, request=request, url=url)
        except UpstreamError as exc:
            outcome = "error"
            with suppress(Exception):
                self._errors.labels(resource=resource, kind=exc.kind.value).inc()
            logger.warning(
                "upstream.fetch_failed",
                extra={
                    "extra": {
                        "resource": resource,
                        "url": url,
                        "kind": exc.kind.value,
                        "status": exc.status_code,
                    }
                },
            )
            raise
        finally:
            with suppress(Exception):
                self._latency.labels(resource=resource, outcome=outcome).observe(
                    time.perf_counter() - start
                )

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    async def _get(self, url: str, *, resource: str) -> httpx.Response:
        """GET ``url``, following redirects that stay on the provider domain."""
        domain = self._settings.allowed_domain
        target = url
        for _ in range(_MAX_REDIRECTS + 1):
            response = await self._send(target, resource=resource)
            if not response.is_redirect:
                return response
            next_url = response.url.join(response.headers["Location"])
            if next_url.scheme not in ("http", "https") or not is_provider_host(
                next_url.host, domain
            ):
                raise UpstreamError(
                    ErrorKind.UPSTREAM_UNKNOWN,
                    f"SEC redirected outside the {domain} domain.",
                    status_code=response.status_code,
                    details={"resource": resource, "url": target, "location": str(next_url)},
                )
            target = str(next_url)
        raise UpstreamError(
            ErrorKind.UPSTREAM_UNKNOWN,
            "SEC redirected too many times.",
            details={"resource": resource, "url": url, "max_redirects": _MAX_REDIRECTS},
        )

    async def _send(self, url: str, *, resource: str) -> httpx.Response:
        """Execute one GET and translate transport failures."""
        headers = dict(self._headers)
        request_id = get_request_id()
        if request_id:
            headers["X-Request-ID"] = request_id

        try:
            return await self._client.get(
                url,
                headers=headers,
                timeout=self._timeout,
            )
        except httpx.TimeoutException as exc:
            raise UpstreamError(
                ErrorKind.UPSTREAM_UNREACHABLE,
                "SEC upstream timed out.",
                details={"resource": resource, "url": url, "error": type(exc).__name__},
            ) from exc
        except httpx.RequestError as exc:
            raise UpstreamError(
                ErrorKind.UPSTREAM_UNREACHABLE,
                "SEC upstream unreachable.",
                details={"resource": resource, "url": url, "error": str(exc)},
            ) from exc

    def _handle_response(
        self,
        response: httpx.Response,
        *,
        request: ValidatedRequest,
        url: str,
    ) -> UpstreamResponse:
        """Map an HTTP response into an :class:`UpstreamResponse` or raise."""
        status = response.status_code
        if not 200 <= status < 300:
            kind = classify_upstream_status(status)
            message = _STATUS_MESSAGES.get(kind, f"Unexpected SEC response status {status}.")
            raise UpstreamError(
                kind,
                message,
                status_code=status,
                details={"url": url, "retry_after": response.headers.get("Retry-After")},
            )

        content_type = response.headers.get("Content-Type", "").split(";")[0].strip().lower()
        json_body: Any | None = None
        if request.resource_class is ResourceClass.SUBMISSIONS:
            try:
                json_body = response.json()
            except ValueError as exc:
                raise UpstreamError(
                    ErrorKind.UPSTREAM_UNKNOWN,
                    "SEC response was not valid JSON.",
                    status_code=status,
                    details={"url": url, "error": str(exc)},
                ) from exc
            if not isinstance(json_body, dict):
                raise UpstreamError(
                    ErrorKind.UPSTREAM_UNKNOWN,
                    "SEC JSON response must be an object.",
                    status_code=status,
                    details={"url": url, "type": type(json_body).__name__},
                )

        content_type = content_type or "application/octet-stream"
        if request.resource_class is ResourceClass.DOCUMENT and not _is_textual(content_type):
            return UpstreamResponse(
                url=str(response.url),
                status_code=status,
                content_type=content_type,
                text=base64.b64encode(response.content).decode("ascii"),
                encoding="base64",
            )

        return UpstreamResponse(
            url=str(response.url),
            status_code=status,
            content_type=content_type,
            text=response.text,
            json_body=json_body,
        )
