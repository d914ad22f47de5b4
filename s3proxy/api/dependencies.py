"""FastAPI dependencies and request helpers shared across the routes."""

from __future__ import annotations

from fastapi import Request

from s3proxy.config import Settings
from s3proxy.core.listing import ListFilesUseCase
from s3proxy.core.proxy import ProxyFileUseCase

CLOUDFLARE_IP_HEADER = "Cf-Connecting-Ip"
REAL_IP_HEADER = "X-Real-Ip"


def get_settings(request: Request) -> Settings:
    """Return the settings the application was created with."""

    return request.app.state.settings


def get_proxy_use_case(request: Request) -> ProxyFileUseCase:
    return request.app.state.proxy_use_case


def get_list_use_case(request: Request) -> ListFilesUseCase:
    return request.app.state.list_use_case


def client_ip(request: Request) -> str:
    """Resolve the client address from the configured proxy header."""

    settings = get_settings(request)
    header = CLOUDFLARE_IP_HEADER if getattr(settings, "cloudflare", False) else REAL_IP_HEADER
    forwarded = (request.headers.get(header) or "").strip()
    if forwarded:
        return forwarded
    return request.client.host if request.client else ""


def base_url(request: Request) -> str:
    """Return ``scheme://host`` for building object links."""

    return str(request.base_url).rstrip("/")


def raw_request_path(request: Request) -> str:
    """Return the request path before percent-decoding, without the leading slash.

    Routing works on the decoded path; resolution needs the bytes the client
    actually sent so encoded traversal can be detected.
    """

    raw = request.scope.get("raw_path")
    if raw:
        path = raw.decode("latin-1").split("?", 1)[0]
    else:
        path = request.url.path
    return path[1:] if path.startswith("/") else path
