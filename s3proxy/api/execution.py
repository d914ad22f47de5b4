"""Run blocking storage work off the event loop with request-scoped cancellation."""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, Callable, TypeVar

from fastapi import Request

from s3proxy.services.storage import StorageCancelled

logger = logging.getLogger(__name__)

T = TypeVar("T")

DISCONNECT_POLL_SECONDS = 0.25

_PENDING = object()


class RequestTimeout(Exception):
    """Raised when storage work outlives the request timeout."""


def _release(result: object) -> None:
    close = getattr(result, "close", None)
    if callable(close):
        try:
            close()
        except Exception:  # noqa: BLE001
            logger.warning("Failed to release abandoned result %r", result, exc_info=True)


class _Handoff:
    """Passes the worker's result to the request, or releases it once the request gave up."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._abandoned = False
        self._result: object = _PENDING

    def deliver(self, result: T) -> T:
        with self._lock:
            if not self._abandoned:
                self._result = result
                return result
        _release(result)
        return result

    def abandon(self) -> None:
        with self._lock:
            self._abandoned = True
            result, self._result = self._result, _PENDING
        if result is not _PENDING:
            _release(result)


async def _watch_disconnect(request: Request, cancel: threading.Event) -> None:
    while not cancel.is_set():
        if await request.is_disconnected():
            logger.info("Client disconnected, cancelling %s", request.url.path)
            cancel.set()
            return
        await asyncio.sleep(DISCONNECT_POLL_SECONDS)


async def run_cancellable(
    request: Request,
    func: Callable[..., T],
    *args: Any,
    timeout: float,
) -> T:
    """Call ``func(*args, cancel_requested=...)`` in a worker thread.

    The cancel flag is raised when the client goes away or ``timeout`` expires;
    storage operations poll it and abort with ``StorageCancelled``. A result
    that arrives after the request gave up is closed if it has a ``close``
    method, so open object bodies do not hold on to their connection.
    """

    cancel = threading.Event()
    handoff = _Handoff()

    def _call() -> T:
        return handoff.deliver(func(*args, cancel_requested=cancel.is_set))

    worker = asyncio.ensure_future(asyncio.to_thread(_call))
    watcher = asyncio.ensure_future(_watch_disconnect(request, cancel))
    try:
        result = await asyncio.wait_for(worker, timeout=timeout)
    except asyncio.TimeoutError as exc:
        cancel.set()
        handoff.abandon()
        logger.warning("Request timed out after %.1fs: %s", timeout, request.url.path)
        raise RequestTimeout(f"Request timed out after {timeout:g} seconds") from exc
    except BaseException:
        cancel.set()
        handoff.abandon()
        raise
    finally:
        watcher.cancel()

    if cancel.is_set():
        # The client left while the worker was finishing.
        handoff.abandon()
        raise StorageCancelled("Client closed request")

    # The flag stays clear on success so a returned body stream keeps working.
    return result


__all__ = ["RequestTimeout", "run_cancellable"]
