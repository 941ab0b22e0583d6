# src/sec_gateway/application/use_cases/resources/fetch_resource.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""
Use Case: Fetch Resource (cache-and-fetch orchestration)

Purpose:
    Serve feed, submissions and document requests from the cache when fresh,
    otherwise fetch upstream, populate the cache with the class TTL and return
    a uniform :class:`ResponseEnvelope`.

Flow:
    1. Validate the identifier for its class; failures return a
       ``VALIDATION_ERROR`` envelope before any cache or upstream call.
    2. Derive the cache key and read the cache. A hit returns immediately
       (no upstream call, no TTL refresh).
    3. On a miss, fetch upstream. Success builds a typed payload, stores the
       serialized envelope with the class TTL and returns it. Failure returns
       a normalized failure envelope and is never cached.

Notes:
    Concurrent misses on one key fetch independently; the last write wins.

Layer: application/use_cases
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from sec_gateway.application.interfaces.cache_port import CacheStorePort
from sec_gateway.application.interfaces.upstream_client import (
    UpstreamClientPort,
    UpstreamResponse,
)
from sec_gateway.application.schemas.dto.envelope import (
    DocumentPayload,
    FeedPayload,
    ResponseEnvelope,
    SubmissionsPayload,
)
from sec_gateway.domain.entities.resource_request import ResourceClass, ResourceRequest
from sec_gateway.domain.enums.error_kind import ErrorKind
from sec_gateway.domain.exceptions.sec import SecValidationError, UpstreamError
from sec_gateway.domain.services.resource_keys import (
    DEFAULT_PROVIDER_DOMAIN,
    ValidatedRequest,
    validate_request,
)

logger = logging.getLogger(__name__)


class ResourceGateway:
    """Cache-and-fetch orchestrator for every resource class.

    Args:
        client: Upstream provider client.
        cache: Fail-open cache store.
        provider_domain: Domain that document URLs must belong to.
    """

    def __init__(
        self,
        client: UpstreamClientPort,
        cache: CacheStorePort,
        *,
        provider_domain: str = DEFAULT_PROVIDER_DOMAIN,
    ) -> None:
        self._client = client
        self._cache = cache
        self._provider_domain = provider_domain

    async def get_feed(self) -> ResponseEnvelope:
        """Return the filings RSS feed."""
        return await self.handle(ResourceRequest.feed())

    async def get_submissions(self, cik: str | None) -> ResponseEnvelope:
        """Return the submissions document for a CIK."""
        return await self.handle(ResourceRequest.submissions(cik))

    async def get_document(self, url: str | None) -> ResponseEnvelope:
        """Return a filing document by absolute URL."""
        return await self.handle(ResourceRequest.document(url))

    async def handle(self, request: ResourceRequest) -> ResponseEnvelope:
        """Resolve one request into an envelope.

        Returns:
            ResponseEnvelope: Always populated; this method does not raise for
            validation, cache or upstream failures.
        """
        try:
            validated = validate_request(request, provider_domain=self._provider_domain)
        except SecValidationError as exc:
            logger.info(
                "gateway.validation_failed",
                extra={
                    "extra": {
                        "resource": request.resource_class.value,
                        "reason": exc.message,
                    }
                },
            )
            return ResponseEnvelope.fail(ErrorKind.VALIDATION_ERROR, exc.message)

        cached = await self._read_cache(validated)
        if cached is not None:
            return cached

        try:
            upstream = await self._client.fetch(validated)
        except UpstreamError as exc:
            return ResponseEnvelope.fail(exc.kind, exc.message)

        envelope = ResponseEnvelope.ok(self._to_payload(validated, upstream))
        await self._write_cache(validated, envelope)
        return envelope

    # ------------------------------------------------------------------ #
    # Cache helpers (fail-open)
    # ------------------------------------------------------------------ #

    async def _read_cache(self, validated: ValidatedRequest) -> ResponseEnvelope | None:
        key = validated.cache_key
        try:
            raw = await self._cache.get(key)
        except Exception as exc:  # noqa: BLE001 - cache outages degrade to a miss
            logger.warning(
                "gateway.cache_read_failed",
                extra={"extra": {"key": key, "error": str(exc)}},
            )
            return None
        if raw is None:
            logger.debug("gateway.cache_miss", extra={"extra": {"key": key}})
            return None

        try:
            envelope = ResponseEnvelope.from_json(raw)
        except ValidationError as exc:
            logger.warning(
                "gateway.cache_entry_invalid",
                extra={"extra": {"key": key, "error": str(exc)}},
            )
            return None
        if not envelope.success:
            return None

        logger.debug("gateway.cache_hit", extra={"extra": {"key": key}})
        return envelope

    async def _write_cache(self, validated: ValidatedRequest, envelope: ResponseEnvelope) -> None:
        key = validated.cache_key
        ttl = validated.request.ttl_seconds
        try:
            stored = await self._cache.set(key, envelope.to_json(), ttl=ttl)
        except Exception as exc:  # noqa: BLE001 - a failed write never fails the request
            logger.warning(
                "gateway.cache_write_failed",
                extra={"extra": {"key": key, "error": str(exc)}},
            )
            return
        if stored:
            logger.info("gateway.cache_populated", extra={"extra": {"key": key, "ttl": ttl}})

    # ------------------------------------------------------------------ #
    # Payload mapping
    # ------------------------------------------------------------------ #

    @staticmethod
    def _to_payload(
        validated: ValidatedRequest,
        upstream: UpstreamResponse,
    ) -> FeedPayload | SubmissionsPayload | DocumentPayload:
        """Map an upstream response into the payload variant for its class."""
        resource_class = validated.resource_class
        if resource_class is ResourceClass.FEED:
            return FeedPayload(
                url=upstream.url,
                content_type=upstream.content_type,
                content=upstream.text,
            )

        if resource_class is ResourceClass.SUBMISSIONS:
            body: dict[str, Any] = dict(upstream.json_body or {})
            name = body.get("name")
            tickers = body.get("tickers") or []
            return SubmissionsPayload(
                cik=str(validated.normalized_identifier),
                name=name if isinstance(name, str) else None,
                tickers=[str(t) for t in tickers] if isinstance(tickers, list) else [],
                submissions=body,
            )

        return DocumentPayload(
            url=str(validated.normalized_identifier),
            content_type=upstream.content_type,
            content=upstream.text,
            encoding="base64" if upstream.encoding == "base64" else "utf-8",
        )
