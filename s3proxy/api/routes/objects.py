"""Per-object redirect and streaming endpoint."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import RedirectResponse, StreamingResponse

from s3proxy.api.dependencies import get_proxy_use_case, get_settings, raw_request_path
from s3proxy.api.execution import RequestTimeout, run_cancellable
from s3proxy.config import Settings
from s3proxy.core.errors import InvalidHost, ObjectNotFound, PresignedURLError, SuspiciousPath
from s3proxy.core.proxy import ProxyFileUseCase
from s3proxy.services.storage import StorageCancelled, StorageError

logger = logging.getLogger(__name__)

router = APIRouter()

CLIENT_CLOSED_REQUEST = 499


def _http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, SuspiciousPath):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Suspicious path detected")
    if isinstance(exc, ObjectNotFound):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Object not found")
    if isinstance(exc, InvalidHost):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid host in presigned URL")
    if isinstance(exc, RequestTimeout):
        return HTTPException(status_code=status.HTTP_504_GATEWAY_TIMEOUT, detail=str(exc))
    if isinstance(exc, StorageCancelled):
        return HTTPException(status_code=CLIENT_CLOSED_REQUEST, detail="Client closed request")
    logger.error("Error handling proxy request: %s", exc)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch object")


@router.get("/{object_path:path}")
async def proxy_file(
    request: Request,
    object_path: str,
    settings: Settings = Depends(get_settings),
    use_case: ProxyFileUseCase = Depends(get_proxy_use_case),
):
    """Redirect to a presigned URL for the resolved object, or stream it through."""

    raw_path = raw_request_path(request)

    if settings.proxy_mode == "stream":
        try:
            streamed = await run_cancellable(request, use_case.open, raw_path, timeout=settings.request_timeout)
        except (SuspiciousPath, ObjectNotFound, RequestTimeout, StorageError) as exc:
            raise _http_error(exc) from exc

        return StreamingResponse(
            streamed.iter_body(),
            media_type=streamed.media_type,
            headers=streamed.headers,
        )

    try:
        presigned_url = await run_cancellable(request, use_case.execute, raw_path, timeout=settings.request_timeout)
    except (SuspiciousPath, ObjectNotFound, InvalidHost, PresignedURLError, RequestTimeout, StorageError) as exc:
        raise _http_error(exc) from exc

    return RedirectResponse(url=presigned_url, status_code=status.HTTP_302_FOUND)


__all__ = ["router"]
