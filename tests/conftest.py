# tests/conftest.py
from __future__ import annotations

import json
import os
from collections.abc import Callable, Generator, Mapping
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

# Required at import time: sec_gateway.main builds the module-level app.
os.environ.setdefault("SEC_USER_AGENT", "SEC Gateway Tests qa@example.com")

from sec_gateway.application.interfaces.upstream_client import UpstreamResponse
from sec_gateway.application.use_cases.resources.fetch_resource import ResourceGateway
from sec_gateway.config.settings import Settings, get_settings
from sec_gateway.dependencies.gateway import get_resource_gateway
from sec_gateway.domain.entities.resource_request import ResourceClass
from sec_gateway.domain.services.resource_keys import ValidatedRequest
from sec_gateway.infrastructure.logging.logger import set_request_context
from sec_gateway.main import create_app

APPLE_SUBMISSIONS: dict[str, Any] = {
    "cik": "0000320193",
    "name": "Apple Inc.",
    "tickers": ["AAPL"],
    "exchanges": ["Nasdaq"],
    "filings": {"recent": {"accessionNumber": ["0000320193-24-000123"]}},
}


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingCache:
    """Cache stub that records keys, values and TTLs."""

    def __init__(self, *, fail_get: bool = False, fail_set: bool = False) -> None:
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self.gets: list[str] = []
        self.sets: list[tuple[str, int]] = []
        self.fail_get = fail_get
        self.fail_set = fail_set

    async def get(self, key: str) -> str | None:
        self.gets.append(key)
        if self.fail_get:
            raise ConnectionError("cache down")
        return self.data.get(key)

    async def set(self, key: str, value: str, *, ttl: int) -> bool:
        self.sets.append((key, ttl))
        if self.fail_set:
            raise ConnectionError("cache down")
        self.data[key] = value
        self.ttls[key] = ttl
        return True


class RecordingUpstream:
    """Upstream stub returning canned responses (or raising) per resource class."""

    def __init__(
        self,
        outcomes: Mapping[ResourceClass, UpstreamResponse | Exception] | None = None,
    ) -> None:
        self.outcomes: dict[ResourceClass, UpstreamResponse | Exception] = {
            ResourceClass.FEED: UpstreamResponse(
                url="https://data.sec.gov/xbrl-rss/edgar-xbrl-rss.xml",
                status_code=200,
                content_type="application/rss+xml",
                text="<rss><channel><title>EDGAR</title></channel></rss>",
            ),
            ResourceClass.SUBMISSIONS: UpstreamResponse(
                url="https://data.sec.gov/submissions/CIK0000320193.json",
                status_code=200,
                content_type="application/json",
                text=json.dumps(APPLE_SUBMISSIONS),
                json_body=APPLE_SUBMISSIONS,
            ),
            ResourceClass.DOCUMENT: UpstreamResponse(
                url="https://www.sec.gov/Archives/edgar/data/320193/doc.htm",
                status_code=200,
                content_type="text/html",
                text="<html><body>10-K</body></html>",
            ),
        }
        if outcomes:
            self.outcomes.update(outcomes)
        self.calls: list[ValidatedRequest] = []

    async def fetch(self, request: ValidatedRequest) -> UpstreamResponse:
        self.calls.append(request)
        outcome = self.outcomes[request.resource_class]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture(autouse=True)
def _reset_global_state() -> Generator[None, None, None]:
    """Keep cached settings and the log request context from leaking across tests."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
    set_request_context(request_id="")


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def recording_cache() -> RecordingCache:
    return RecordingCache()


@pytest.fixture
def recording_upstream() -> RecordingUpstream:
    return RecordingUpstream()


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    """Build Settings from env-style names, defaulting to a hermetic test profile."""

    def _make(**overrides: Any) -> Settings:
        values: dict[str, Any] = {
            "ENVIRONMENT": "test",
            "CACHE_BACKEND": "memory",
            "RATE_LIMIT_ENABLED": False,
            "SEC_USER_AGENT": "SEC Gateway Tests qa@example.com",
        }
        values.update(overrides)
        return Settings(**values)

    return _make


@pytest.fixture
def make_app(make_settings: Callable[..., Settings]) -> Callable[..., FastAPI]:
    """Create an app whose gateway dependency is overridden (when given)."""

    def _make(gateway: ResourceGateway | None = None, **settings_overrides: Any) -> FastAPI:
        app = create_app(make_settings(**settings_overrides))
        if gateway is not None:
            app.dependency_overrides[get_resource_gateway] = lambda: gateway
        return app

    return _make


@pytest.fixture
def stub_gateway(
    recording_upstream: RecordingUpstream, recording_cache: RecordingCache
) -> ResourceGateway:
    return ResourceGateway(recording_upstream, recording_cache)


@pytest.fixture
def client(make_app: Callable[..., FastAPI], stub_gateway: ResourceGateway) -> TestClient:
    return TestClient(make_app(stub_gateway))
