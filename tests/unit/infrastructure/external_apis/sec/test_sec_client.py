# tests/unit/infrastructure/external_apis/sec/test_sec_client.py
from __future__ import annotations

import base64

import httpx
import pytest
import respx

from sec_gateway.domain.entities.resource_request import ResourceRequest
from sec_gateway.domain.enums.error_kind import ErrorKind
from sec_gateway.domain.exceptions.sec import UpstreamError
from sec_gateway.domain.services.resource_keys import validate_request
from sec_gateway.infrastructure.external_apis.sec.client import SecClient
from sec_gateway.infrastructure.external_apis.sec.settings import SecSettings
from sec_gateway.infrastructure.logging.logger import set_request_context

UA = "sec-gateway-tests (qa@example.com)"
DOC_URL = "https://www.sec.gov/Archives/edgar/data/320193/000032019324000123/aapl-20240928.htm"


def _settings() -> SecSettings:
    return SecSettings(base_url="https://data.sec.gov", user_agent=UA, timeout_s=2.0)


@pytest.mark.asyncio
@respx.mock
async def test_submissions_url_headers_and_json() -> None:
    body = {"cik": "0000320193", "name": "Apple Inc.", "tickers": ["AAPL"]}
    route = respx.get("https://data.sec.gov/submissions/CIK0000320193.json").mock(
        return_value=httpx.Response(200, json=body)
    )
    async with httpx.AsyncClient() as http:
        client = SecClient(_settings(), http=http)
        set_request_context(request_id="req-123")

        resp = await client.fetch(validate_request(ResourceRequest.submissions("320193")))

    assert route.called
    sent = route.calls.last.request
    assert sent.headers["User-Agent"] == UA
    assert sent.headers["X-Request-ID"] == "req-123"
    assert resp.json_body == body
    assert resp.content_type == "application/json"


@pytest.mark.asyncio
@respx.mock
async def test_feed_url_is_base_plus_feed_path() -> None:
    route = respx.get("https://data.sec.gov/xbrl-rss/edgar-xbrl-rss.xml").mock(
        return_value=httpx.Response(
            200, text="<rss/>", headers={"Content-Type": "application/rss+xml; charset=utf-8"}
        )
    )
    async with httpx.AsyncClient() as http:
        resp = await SecClient(_settings(), http=http).fetch(validate_request(ResourceRequest.feed()))

    assert route.called
    assert resp.text == "<rss/>"
    assert resp.content_type == "application/rss+xml"
    assert resp.json_body is None


@pytest.mark.asyncio
@respx.mock
async def test_document_uses_absolute_url_not_base() -> None:
    route = respx.get(DOC_URL).mock(
        return_value=httpx.Response(200, text="<html/>", headers={"Content-Type": "text/html"})
    )
    async with httpx.AsyncClient() as http:
        client = SecClient(_settings(), http=http)
        validated = validate_request(ResourceRequest.document(DOC_URL))
        assert client.build_url(validated) == DOC_URL
        resp = await client.fetch(validated)

    assert route.called
    assert resp.url == DOC_URL
    assert resp.text == "<html/>"


@pytest.mark.asyncio
@respx.mock
@pytest.mark.parametrize(
    ("status", "kind"),
    [
        (404, ErrorKind.UPSTREAM_NOT_FOUND),
        (400, ErrorKind.UPSTREAM_INVALID_REQUEST),
        (403, ErrorKind.UPSTREAM_FORBIDDEN),
        (429, ErrorKind.UPSTREAM_RATE_LIMITED),
        (500, ErrorKind.UPSTREAM_UNAVAILABLE),
        (502, ErrorKind.UPSTREAM_UNAVAILABLE),
        (418, ErrorKind.UPSTREAM_UNKNOWN),
    ],
)
async def test_status_mapping(status: int, kind: ErrorKind) -> None:
    respx.get("https://data.sec.gov/submissions/CIK0000000001.json").mock(
        return_value=httpx.Response(status, json={"detail": "x"})
    )
    async with httpx.AsyncClient() as http:
        client = SecClient(_settings(), http=http)
        with pytest.raises(UpstreamError) as excinfo:
            await client.fetch(validate_request(ResourceRequest.submissions("1")))

    assert excinfo.value.kind is kind
    assert excinfo.value.status_code == status


@pytest.mark.asyncio
@respx.mock
@pytest.mark.parametrize(
    "exc",
    [
        httpx.ConnectTimeout("timed out"),
        httpx.ReadTimeout("timed out"),
        httpx.ConnectError("refused"),
    ],
)
async def test_transport_failures_are_unreachable(exc: Exception) -> None:
    respx.get("https://data.sec.gov/xbrl-rss/edgar-xbrl-rss.xml").mock(side_effect=exc)
    async with httpx.AsyncClient() as http:
        client = SecClient(_settings(), http=http)
        with pytest.raises(UpstreamError) as excinfo:
            await client.fetch(validate_request(ResourceRequest.feed()))

    assert excinfo.value.kind is ErrorKind.UPSTREAM_UNREACHABLE
    assert excinfo.value.status_code is None


@pytest.mark.asyncio
@respx.mock
@pytest.mark.parametrize("content", [b"<html>not json</html>", b"[1, 2, 3]"])
async def test_unusable_submissions_json_is_unknown(content: bytes) -> None:
    respx.get("https://data.sec.gov/submissions/CIK0000000004.json").mock(
        return_value=httpx.Response(200, content=content)
    )
    async with httpx.AsyncClient() as http:
        client = SecClient(_settings(), http=http)
        with pytest.raises(UpstreamError) as excinfo:
            await client.fetch(validate_request(ResourceRequest.submissions("4")))

    assert excinfo.value.kind is ErrorKind.UPSTREAM_UNKNOWN


@pytest.mark.asyncio
async def test_owned_client_is_closed() -> None:
    client = SecClient(_settings())
    await client.aclose()
    assert client._client.is_closed


def test_blank_user_agent_rejected() -> None:
    with pytest.raises(ValueError):
        SecSettings(user_agent="   ")


@pytest.mark.asyncio
@respx.mock
async def test_redirect_off_provider_domain_is_refused() -> None:
    respx.get(DOC_URL).mock(
        return_value=httpx.Response(302, headers={"Location": "https://evil.example/doc.htm"})
    )
    offsite = respx.get("https://evil.example/doc.htm").mock(
        return_value=httpx.Response(200, text="not from the SEC")
    )
    async with httpx.AsyncClient() as http:
        client = SecClient(_settings(), http=http)
        with pytest.raises(UpstreamError) as excinfo:
            await client.fetch(validate_request(ResourceRequest.document(DOC_URL)))

    assert not offsite.called
    assert excinfo.value.kind is ErrorKind.UPSTREAM_UNKNOWN
    assert excinfo.value.status_code == 302


@pytest.mark.asyncio
@respx.mock
async def test_redirect_within_provider_domain_is_followed() -> None:
    moved = "https://www.sec.gov/Archives/edgar/data/320193/moved.htm"
    respx.get(DOC_URL).mock(
        return_value=httpx.Response(301, headers={"Location": "/Archives/edgar/data/320193/moved.htm"})
    )
    target = respx.get(moved).mock(
        return_value=httpx.Response(200, text="<html/>", headers={"Content-Type": "text/html"})
    )
    async with httpx.AsyncClient() as http:
        resp = await SecClient(_settings(), http=http).fetch(
            validate_request(ResourceRequest.document(DOC_URL))
        )

    assert target.called
    assert target.calls.last.request.headers["User-Agent"] == UA
    assert resp.url == moved
    assert resp.text == "<html/>"


@pytest.mark.asyncio
@respx.mock
async def test_redirect_loop_is_bounded() -> None:
    respx.get(DOC_URL).mock(return_value=httpx.Response(302, headers={"Location": DOC_URL}))
    async with httpx.AsyncClient() as http:
        client = SecClient(_settings(), http=http)
        with pytest.raises(UpstreamError) as excinfo:
            await client.fetch(validate_request(ResourceRequest.document(DOC_URL)))

    assert excinfo.value.kind is ErrorKind.UPSTREAM_UNKNOWN
    assert "too many" in excinfo.value.message


@pytest.mark.asyncio
@respx.mock
async def test_binary_document_is_base64_encoded() -> None:
    pdf_url = "https://www.sec.gov/Archives/edgar/data/320193/exhibit.pdf"
    raw = bytes(range(256))
    respx.get(pdf_url).mock(
        return_value=httpx.Response(200, content=raw, headers={"Content-Type": "application/pdf"})
    )
    async with httpx.AsyncClient() as http:
        resp = await SecClient(_settings(), http=http).fetch(
            validate_request(ResourceRequest.document(pdf_url))
        )

    assert resp.encoding == "base64"
    assert resp.content_type == "application/pdf"
    assert base64.b64decode(resp.text) == raw


@pytest.mark.asyncio
@respx.mock
async def test_xml_document_stays_text() -> None:
    xml_url = "https://www.sec.gov/Archives/edgar/data/320193/primary_doc.xml"
    respx.get(xml_url).mock(
        return_value=httpx.Response(200, text="<doc/>", headers={"Content-Type": "application/xml"})
    )
    async with httpx.AsyncClient() as http:
        resp = await SecClient(_settings(), http=http).fetch(
            validate_request(ResourceRequest.document(xml_url))
        )

    assert resp.encoding == "utf-8"
    assert resp.text == "<doc/>"
