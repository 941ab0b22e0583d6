# tests/unit/infrastructure/http/test_http_error_envelopes.py
from __future__ import annotations

from fastapi.testclient import TestClient

from sec_gateway.infrastructure.http import errors


def test_error_envelope_optional_fields() -> None:
    full = errors.error_envelope(
        code="RATE_LIMITED",
        http_status=429,
        message="Too many requests",
        details={"limit": 10},
        trace_id="req-1",
    )
    assert full == {
        "error": {
            "code": "RATE_LIMITED",
            "http_status": 429,
            "message": "Too many requests",
            "details": {"limit": 10},
            "trace_id": "req-1",
        }
    }

    bare = errors.error_envelope(code="X", http_status=500, message="m")
    assert bare == {"error": {"code": "X", "http_status": 500, "message": "m"}}


def test_unknown_route_uses_error_envelope(make_app) -> None:
    client = TestClient(make_app())

    resp = client.get("/api/does-not-exist", headers={"X-Request-ID": "req-404"})

    assert resp.status_code == 404
    err = resp.json()["error"]
    assert err["code"] == "HTTP_ERROR"
    assert err["trace_id"] == "req-404"


def test_unhandled_exception_returns_internal_error(make_app) -> None:
    class _Exploding:
        async def get_feed(self):
            raise RuntimeError("kaboom")

    client = TestClient(make_app(_Exploding()), raise_server_exceptions=False)

    resp = client.get("/api/rss-feed")

    assert resp.status_code == 500
    assert resp.json()["error"]["code"] == "INTERNAL_ERROR"
    assert "kaboom" not in resp.text
