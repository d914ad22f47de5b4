"""Tests for request helpers used by the routes."""

from __future__ import annotations

from types import SimpleNamespace

from starlette.requests import Request

from s3proxy.api.dependencies import base_url, client_ip, raw_request_path


def _request(settings, *, path="/", raw_path=None, headers=None, client=("10.0.0.1", 5123)) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "scheme": "http",
        "server": ("files.example.org", 80),
        "path": path,
        "query_string": b"",
        "headers": [(name.lower().encode(), value.encode()) for name, value in (headers or {}).items()],
        "client": client,
        "app": SimpleNamespace(state=SimpleNamespace(settings=settings)),
    }
    if raw_path is not None:
        scope["raw_path"] = raw_path
    return Request(scope)


def test_client_ip_uses_cloudflare_header_when_enabled(settings_factory) -> None:
    request = _request(
        settings_factory(cloudflare=True),
        headers={"Cf-Connecting-Ip": "203.0.113.7", "X-Real-Ip": "198.51.100.1"},
    )

    assert client_ip(request) == "203.0.113.7"


def test_client_ip_uses_real_ip_header_when_cloudflare_disabled(settings_factory) -> None:
    request = _request(
        settings_factory(cloudflare=False),
        headers={"Cf-Connecting-Ip": "203.0.113.7", "X-Real-Ip": "198.51.100.1"},
    )

    assert client_ip(request) == "198.51.100.1"


def test_client_ip_falls_back_to_peer_address(settings_factory) -> None:
    assert client_ip(_request(settings_factory())) == "10.0.0.1"
    assert client_ip(_request(settings_factory(), client=None)) == ""


def test_raw_request_path_keeps_percent_escapes(settings_factory) -> None:
    request = _request(settings_factory(), path="/../etc/passwd", raw_path=b"/%2e%2e%2fetc%2fpasswd")

    assert raw_request_path(request) == "%2e%2e%2fetc%2fpasswd"


def test_raw_request_path_drops_query_string(settings_factory) -> None:
    request = _request(settings_factory(), path="/a.txt", raw_path=b"/a.txt?download=1")

    assert raw_request_path(request) == "a.txt"


def test_raw_request_path_without_raw_bytes(settings_factory) -> None:
    assert raw_request_path(_request(settings_factory(), path="/docs/a.txt")) == "docs/a.txt"


def test_base_url(settings_factory) -> None:
    assert base_url(_request(settings_factory(), path="/list")) == "http://files.example.org"
