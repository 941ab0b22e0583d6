# tests/unit/application/use_cases/test_resource_gateway.py
from __future__ import annotations

import pytest

from sec_gateway.application.interfaces.upstream_client import UpstreamResponse
from sec_gateway.application.schemas.dto.envelope import (
    DocumentPayload,
    FeedPayload,
    ResponseEnvelope,
    SubmissionsPayload,
)
from sec_gateway.application.use_cases.resources.fetch_resource import ResourceGateway
from sec_gateway.domain.entities.resource_request import ResourceClass
from sec_gateway.domain.enums.error_kind import ErrorKind
from sec_gateway.domain.exceptions.sec import UpstreamError
from sec_gateway.infrastructure.caching.memory_cache import InMemoryCacheStore

DOC_URL = "https://www.sec.gov/Archives/edgar/data/320193/000032019324000123/aapl-20240928.htm"


@pytest.mark.asyncio
async def test_feed_is_fetched_once_then_served_from_cache(recording_upstream, recording_cache):
    gw = ResourceGateway(recording_upstream, recording_cache)

    first = await gw.get_feed()
    second = await gw.get_feed()

    assert first.success and isinstance(first.data, FeedPayload)
    assert second == first
    assert len(recording_upstream.calls) == 1
    assert recording_cache.ttls == {"feed": 900}


@pytest.mark.asyncio
async def test_submissions_payload_and_ttl(recording_upstream, recording_cache):
    gw = ResourceGateway(recording_upstream, recording_cache)

    env = await gw.get_submissions("320193")

    assert env.success
    assert isinstance(env.data, SubmissionsPayload)
    assert env.data.cik == "0000320193"
    assert env.data.name == "Apple Inc."
    assert env.data.tickers == ["AAPL"]
    assert env.data.submissions["filings"]["recent"]["accessionNumber"]
    assert recording_cache.ttls == {"submissions:0000320193": 86_400}


@pytest.mark.asyncio
async def test_equivalent_ciks_hit_the_same_entry(recording_upstream, recording_cache):
    gw = ResourceGateway(recording_upstream, recording_cache)

    await gw.get_submissions("320193")
    again = await gw.get_submissions("0000320193")

    assert again.success
    assert len(recording_upstream.calls) == 1
    assert recording_cache.gets == ["submissions:0000320193", "submissions:0000320193"]


@pytest.mark.asyncio
async def test_document_uses_absolute_url_and_path_key(recording_upstream, recording_cache):
    gw = ResourceGateway(recording_upstream, recording_cache)

    env = await gw.get_document(DOC_URL)

    assert isinstance(env.data, DocumentPayload)
    assert env.data.url == DOC_URL
    assert env.data.content_type == "text/html"
    assert recording_upstream.calls[0].normalized_identifier == DOC_URL
    assert recording_cache.ttls == {
        "document:/Archives/edgar/data/320193/000032019324000123/aapl-20240928.htm": 3_600
    }


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("call", "arg", "message"),
    [
        ("get_submissions", "invalid-cik", "Invalid CIK format. CIK must be numeric."),
        ("get_submissions", "", "Invalid CIK format. CIK must be numeric."),
        ("get_document", None, "Document URL is required."),
        ("get_document", "https://example.com/evil", "Document URL must reference the sec.gov domain."),
    ],
)
async def test_validation_failures_touch_nothing(
    recording_upstream, recording_cache, call: str, arg: str | None, message: str
):
    gw = ResourceGateway(recording_upstream, recording_cache)

    env = await getattr(gw, call)(arg)

    assert not env.success
    assert env.code is ErrorKind.VALIDATION_ERROR
    assert env.error == message
    assert recording_upstream.calls == []
    assert recording_cache.gets == []
    assert recording_cache.sets == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "kind",
    [
        ErrorKind.UPSTREAM_NOT_FOUND,
        ErrorKind.UPSTREAM_UNAVAILABLE,
        ErrorKind.UPSTREAM_UNREACHABLE,
        ErrorKind.UPSTREAM_RATE_LIMITED,
    ],
)
async def test_upstream_failures_are_returned_and_never_cached(recording_upstream, recording_cache, kind):
    recording_upstream.outcomes[ResourceClass.SUBMISSIONS] = UpstreamError(kind, "upstream said no")
    gw = ResourceGateway(recording_upstream, recording_cache)

    first = await gw.get_submissions("320193")
    second = await gw.get_submissions("320193")

    assert not first.success
    assert first.code is kind
    assert first.error == "upstream said no"
    assert first.data is None
    assert second.code is kind
    assert len(recording_upstream.calls) == 2
    assert recording_cache.sets == []


@pytest.mark.asyncio
async def test_expired_entry_triggers_refetch(recording_upstream, fake_clock):
    cache = InMemoryCacheStore(clock=fake_clock)
    gw = ResourceGateway(recording_upstream, cache)

    await gw.get_feed()
    fake_clock.advance(899)
    await gw.get_feed()
    assert len(recording_upstream.calls) == 1

    fake_clock.advance(2)
    await gw.get_feed()
    assert len(recording_upstream.calls) == 2


@pytest.mark.asyncio
async def test_cache_hit_does_not_refresh_ttl(recording_upstream, fake_clock):
    cache = InMemoryCacheStore(clock=fake_clock)
    gw = ResourceGateway(recording_upstream, cache)

    await gw.get_feed()
    fake_clock.advance(600)
    await gw.get_feed()
    fake_clock.advance(301)
    await gw.get_feed()

    assert len(recording_upstream.calls) == 2


@pytest.mark.asyncio
async def test_cache_read_failure_behaves_like_a_miss(recording_upstream, recording_cache):
    recording_cache.fail_get = True
    gw = ResourceGateway(recording_upstream, recording_cache)

    env = await gw.get_feed()

    assert env.success
    assert len(recording_upstream.calls) == 1
    assert recording_cache.sets == [("feed", 900)]


@pytest.mark.asyncio
async def test_cache_write_failure_still_returns_data(recording_upstream, recording_cache):
    recording_cache.fail_set = True
    gw = ResourceGateway(recording_upstream, recording_cache)

    env = await gw.get_document(DOC_URL)

    assert env.success
    assert isinstance(env.data, DocumentPayload)


@pytest.mark.asyncio
async def test_undecodable_cache_entry_is_a_miss(recording_upstream, recording_cache):
    recording_cache.data["feed"] = "{not-an-envelope"
    gw = ResourceGateway(recording_upstream, recording_cache)

    env = await gw.get_feed()

    assert env.success
    assert len(recording_upstream.calls) == 1
    assert ResponseEnvelope.from_json(recording_cache.data["feed"]) == env


@pytest.mark.asyncio
async def test_submissions_without_optional_fields(recording_upstream, recording_cache):
    recording_upstream.outcomes[ResourceClass.SUBMISSIONS] = UpstreamResponse(
        url="https://data.sec.gov/submissions/CIK0000000001.json",
        status_code=200,
        content_type="application/json",
        text='{"cik": "1"}',
        json_body={"cik": "1"},
    )
    gw = ResourceGateway(recording_upstream, recording_cache)

    env = await gw.get_submissions("1")

    assert isinstance(env.data, SubmissionsPayload)
    assert env.data.name is None
    assert env.data.tickers == []
    assert env.data.submissions == {"cik": "1"}


@pytest.mark.asyncio
async def test_binary_document_keeps_base64_encoding_through_cache(recording_upstream, recording_cache):
    recording_upstream.outcomes[ResourceClass.DOCUMENT] = UpstreamResponse(
        url="https://www.sec.gov/Archives/edgar/data/320193/exhibit.pdf",
        status_code=200,
        content_type="application/pdf",
        text="JVBERi0xLjQK",
        encoding="base64",
    )
    gw = ResourceGateway(recording_upstream, recording_cache)

    fetched = await gw.get_document("https://www.sec.gov/Archives/edgar/data/320193/exhibit.pdf")
    cached = await gw.get_document("https://www.sec.gov/Archives/edgar/data/320193/exhibit.pdf")

    assert isinstance(fetched.data, DocumentPayload)
    assert fetched.data.encoding == "base64"
    assert fetched.data.content == "JVBERi0xLjQK"
    assert cached == fetched
    assert len(recording_upstream.calls) == 1
