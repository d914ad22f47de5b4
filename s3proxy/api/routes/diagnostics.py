"""Auxiliary endpoints: the favicon placeholder and optional runtime diagnostics."""

from __future__ import annotations

import sys
import threading
import traceback

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse, Response

router = APIRouter()


@router.get("/favicon.ico", include_in_schema=False)
def favicon() -> Response:
    return Response(status_code=204)


def build_profiling_router() -> APIRouter:
    """Return a router exposing thread stack dumps."""

    profiling = APIRouter()

    @profiling.get("/threads", response_class=PlainTextResponse)
    def thread_dump() -> str:
        names = {thread.ident: thread.name for thread in threading.enumerate()}
        sections = []
        for ident, frame in sys._current_frames().items():
            header = f"Thread {names.get(ident, '?')} ({ident})"
            sections.append(header + "\n" + "".join(traceback.format_stack(frame)))
        return "\n".join(sections)

    return profiling


__all__ = ["build_profiling_router", "router"]
