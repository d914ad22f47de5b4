"""Bucket listing endpoint."""

from __future__ import annotations

import logging
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from s3proxy.api.dependencies import base_url, get_list_use_case, get_settings
from s3proxy.api.execution import RequestTimeout, run_cancellable
from s3proxy.api.schemas import ListResponse, ObjectEntry
from s3proxy.config import Settings
from s3proxy.core.listing import ListFilesUseCase
from s3proxy.services.storage import StorageCancelled, StorageError

logger = logging.getLogger(__name__)

router = APIRouter()

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parents[2] / "templates"))


def _wants_html(request: Request) -> bool:
    return "text/html" in request.headers.get("accept", "")


@router.get("/list", response_model=ListResponse, status_code=status.HTTP_200_OK)
async def list_files(
    request: Request,
    settings: Settings = Depends(get_settings),
    use_case: ListFilesUseCase = Depends(get_list_use_case),
):
    """Return every visible object, as JSON or as a grouped HTML page."""

    render_html = _wants_html(request)
    operation = use_case.list_view if render_html else use_case.list_json

    try:
        result = await run_cancellable(
            request,
            operation,
            base_url(request),
            timeout=settings.request_timeout,
        )
    except RequestTimeout as exc:
        raise HTTPException(status_code=status.HTTP_504_GATEWAY_TIMEOUT, detail=str(exc)) from exc
    except StorageCancelled as exc:
        raise HTTPException(status_code=499, detail="Client closed request") from exc
    except StorageError as exc:
        logger.error("Failed to list objects: %s", exc)
        prefix = "Failed to prepare list view" if render_html else "Failed to list files"
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"{prefix}: {exc}",
        ) from exc

    if render_html:
        return templates.TemplateResponse(
            request,
            "list.html",
            {"directories": result, "app_name": settings.app_name},
            media_type="text/html",
        )

    return ListResponse(
        error=False,
        list=[ObjectEntry(name=entry.name, url=entry.url) for entry in result],
    )


__all__ = ["router", "templates"]
