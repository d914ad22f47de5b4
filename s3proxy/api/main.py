"""FastAPI application serving the bucket listing and object redirects."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from s3proxy.api.dependencies import client_ip
from s3proxy.api.routes import diagnostics, listing, objects
from s3proxy.api.schemas import ErrorResponse
from s3proxy.config import Settings
from s3proxy.core.listing import ListFilesUseCase
from s3proxy.core.proxy import ProxyFileUseCase
from s3proxy.services.storage import StorageBackend

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "X-XSS-Protection": "0",
}

# Logged at their own level where they are raised, or not worth a log line.
_QUIET_STATUSES = {400, 403, 404, 405, 499}


def _error_response(status_code: int, message: str, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(message=message).model_dump(),
        headers=headers,
    )


def _log_http_error(request: Request, status_code: int, message: str) -> None:
    user_agent = request.headers.get("user-agent", "")
    ip = client_ip(request)
    if not user_agent or not ip or status_code in _QUIET_STATUSES:
        return
    logger.error(
        "HTTP error %s: %s | ua=%s ip=%s method=%s path=%s",
        status_code,
        message,
        user_agent,
        ip,
        request.method,
        request.url.path,
    )


def _configure_middleware(api_app: FastAPI) -> None:
    api_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @api_app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response


def _configure_error_handlers(api_app: FastAPI) -> None:
    @api_app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message = str(exc.detail) if exc.detail else "Error"
        _log_http_error(request, exc.status_code, message)
        return _error_response(exc.status_code, message, getattr(exc, "headers", None))

    @api_app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error for %s %s", request.method, request.url.path)
        return _error_response(500, "Internal Server Error")


def _normalize_mount(path: str) -> str:
    cleaned = "/" + path.strip().strip("/")
    return cleaned if cleaned != "/" else ""


def create_app(settings: Settings, storage: StorageBackend) -> FastAPI:
    """Build the gateway application around an already-initialised storage handle."""

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Read-only gateway in front of an S3-compatible bucket.",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    proxy_use_case = ProxyFileUseCase(storage)
    proxy_use_case.set_expiry_minutes(settings.presign_expiry_minutes)

    app.state.settings = settings
    app.state.storage = storage
    app.state.proxy_use_case = proxy_use_case
    app.state.list_use_case = ListFilesUseCase(storage)

    _configure_middleware(app)
    _configure_error_handlers(app)

    if settings.enable_list:
        app.include_router(listing.router, tags=["listing"])

    pprof = _normalize_mount(settings.pprof or "")
    if pprof:
        logger.info("» pprof enabled: %s", pprof)
        app.include_router(diagnostics.build_profiling_router(), prefix=pprof, tags=["diagnostics"])

    app.include_router(diagnostics.router)
    # Catch-all: must stay last.
    app.include_router(objects.router, tags=["objects"])

    return app


__all__ = ["SECURITY_HEADERS", "create_app"]
