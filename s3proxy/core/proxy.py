"""Proxy use case: turn a request path into a presigned redirect or a body stream."""

from __future__ import annotations

import logging
import mimetypes
from dataclasses import dataclass
from typing import Dict, Iterator, Optional
from urllib.parse import quote

from s3proxy.core.errors import ObjectNotFound
from s3proxy.core.resolver import ObjectResolver, decode_path
from s3proxy.core.security import check_path, validate_presigned_host
from s3proxy.services.storage import CancelCheck, ObjectStream, StorageBackend, StorageFileNotFound

logger = logging.getLogger(__name__)

DEFAULT_EXPIRY_MINUTES = 60
GENERIC_CONTENT_TYPE = "application/octet-stream"

_EXTENSION_MEDIA_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".svg": "image/svg+xml",
    ".pdf": "application/pdf",
    ".txt": "text/plain",
    ".json": "application/json",
    ".csv": "text/csv",
}


def guess_media_type(file_name: str) -> str:
    """Return an appropriate media type for the given filename."""

    suffix = file_name.lower().rsplit(".", 1)
    if len(suffix) == 2:
        candidate = f".{suffix[1]}"
        if candidate in _EXTENSION_MEDIA_TYPES:
            return _EXTENSION_MEDIA_TYPES[candidate]

    guessed, _ = mimetypes.guess_type(file_name)
    return guessed or GENERIC_CONTENT_TYPE


@dataclass
class StreamedObject:
    """Object body plus the response headers it should be served with."""

    key: str
    filename: str
    media_type: str
    size: Optional[int]
    stream: ObjectStream

    @property
    def headers(self) -> Dict[str, str]:
        fallback = self.filename.encode("ascii", "replace").decode("ascii").replace('"', "'")
        disposition = f'inline; filename="{fallback}"'
        if fallback != self.filename:
            disposition += f"; filename*=UTF-8''{quote(self.filename, safe='')}"
        headers = {"Content-Disposition": disposition}
        if self.size is not None:
            headers["Content-Length"] = str(self.size)
        return headers

    def iter_body(self) -> Iterator[bytes]:
        try:
            yield from self.stream.chunks
        finally:
            self.close()

    def close(self) -> None:
        self.stream.close()


class ProxyFileUseCase:
    """Resolve a request path and hand back a way to reach the object."""

    def __init__(self, storage: StorageBackend, expiry_minutes: int = DEFAULT_EXPIRY_MINUTES):
        self._storage = storage
        self._resolver = ObjectResolver(storage)
        self.expiry_minutes = DEFAULT_EXPIRY_MINUTES
        self.set_expiry_minutes(expiry_minutes)

    def set_expiry_minutes(self, minutes: int) -> None:
        if minutes > 0:
            self.expiry_minutes = minutes

    def _resolve_key(self, raw_path: str, cancel_requested: CancelCheck) -> str:
        check_path(raw_path, stage="raw")

        decoded = decode_path(raw_path)
        if not decoded.ok:
            logger.warning("Failed to decode URL, using it as-is: %s", raw_path)
        object_path = decoded.decoded

        check_path(object_path, stage="decoded")

        if not object_path or not raw_path:
            raise ObjectNotFound("Empty object path")

        logger.debug("Request for %s (decoded from %s)", object_path, raw_path)

        key = self._resolver.resolve(object_path, cancel_requested)
        if key is None:
            logger.warning("Object not found: %s", object_path)
            raise ObjectNotFound(f"Object not found: {object_path}")
        return key

    def execute(self, raw_path: str, cancel_requested: CancelCheck = None) -> str:
        """Return a validated presigned URL for the object behind ``raw_path``.

        Raises:
            SuspiciousPath: raw or decoded path contains ``..`` or ``//``.
            ObjectNotFound: empty path or no resolver tier matched.
            StorageError: listing or signing failed.
            InvalidHost: the signed URL points outside the configured endpoint.
        """

        key = self._resolve_key(raw_path, cancel_requested)
        presigned_url = self._storage.presign_url(key, self.expiry_minutes, cancel_requested)
        return validate_presigned_host(presigned_url, self._storage.endpoint)

    def open(self, raw_path: str, cancel_requested: CancelCheck = None) -> StreamedObject:
        """Open the object behind ``raw_path`` for streaming through the gateway."""

        key = self._resolve_key(raw_path, cancel_requested)
        try:
            stream = self._storage.open_object(key, cancel_requested)
        except StorageFileNotFound as exc:
            # Listed a moment ago but gone now.
            raise ObjectNotFound(f"Object not found: {key}") from exc

        filename = key.rsplit("/", 1)[-1]
        media_type = stream.content_type
        if not media_type or media_type == GENERIC_CONTENT_TYPE:
            media_type = guess_media_type(filename)

        logger.debug("Streaming object: %s (type: %s, size: %s)", key, media_type, stream.size)
        return StreamedObject(
            key=key,
            filename=filename,
            media_type=media_type,
            size=stream.size,
            stream=stream,
        )


__all__ = [
    "DEFAULT_EXPIRY_MINUTES",
    "ProxyFileUseCase",
    "StreamedObject",
    "guess_media_type",
]
