"""S3-compatible storage backend consumed by the gateway."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, Iterator, Optional
from urllib.parse import urlsplit

from s3proxy.services.objects import StoredObject

logger = logging.getLogger(__name__)

CancelCheck = Optional[Callable[[], bool]]

STREAM_CHUNK_SIZE = 64 * 1024
LIST_PAGE_SIZE = 1000


class StorageError(Exception):
    """Base class for storage backend errors."""


class StorageFileNotFound(StorageError):
    """Raised when a requested object is missing."""


class StorageCancelled(StorageError):
    """Raised when the caller gave up on an in-flight storage operation."""


@dataclass
class ObjectStream:
    """Open handle on an object body."""

    key: str
    content_type: Optional[str] = None
    size: Optional[int] = None
    chunks: Iterator[bytes] = field(default_factory=lambda: iter(()))
    _close: Optional[Callable[[], None]] = None

    def close(self) -> None:
        if self._close is not None:
            self._close()
            self._close = None


def _raise_if_cancelled(cancel_requested: CancelCheck, operation: str) -> None:
    if cancel_requested is not None and cancel_requested():
        raise StorageCancelled(f"{operation} cancelled by caller")


def endpoint_authority(endpoint: str) -> str:
    """Return ``host[:port]`` for an endpoint given with or without a scheme."""

    candidate = (endpoint or "").strip()
    if "://" in candidate:
        return urlsplit(candidate).netloc
    return candidate.rstrip("/")


class StorageBackend:
    """Interface for bucket storage implementations."""

    @property
    def endpoint(self) -> str:
        raise NotImplementedError

    def iter_objects(self, cancel_requested: CancelCheck = None) -> Iterator[StoredObject]:
        raise NotImplementedError

    def presign_url(
        self,
        key: str,
        expiry_minutes: int,
        cancel_requested: CancelCheck = None,
    ) -> str:
        raise NotImplementedError

    def open_object(self, key: str, cancel_requested: CancelCheck = None) -> ObjectStream:
        raise NotImplementedError


class S3StorageBackend(StorageBackend):
    """AWS S3 (or compatible) storage backend."""

    def __init__(
        self,
        *,
        endpoint: str,
        bucket: str,
        access_key: str,
        secret_key: str,
        secure: bool = True,
        region: Optional[str] = None,
        force_path_style: bool = False,
        timeout: float = 10.0,
        client=None,
        verify: bool = True,
    ) -> None:
        try:
            import boto3
            from botocore.config import Config as BotoConfig
            from botocore.exceptions import BotoCoreError, ClientError
        except ImportError as exc:  # pragma: no cover - optional dependency
            raise StorageError(
                "boto3 must be installed to use the S3 storage backend (pip install boto3).",
            ) from exc

        self._client_errors = (ClientError, BotoCoreError)
        self._client_error = ClientError

        if not bucket:
            raise StorageError("S3 storage configuration is missing S3_BUCKET.")
        if not endpoint:
            raise StorageError("S3 storage configuration is missing S3_ENDPOINT.")

        self.bucket_name = bucket
        self._endpoint = endpoint_authority(endpoint)

        if client is None:
            scheme = "https" if secure else "http"
            config_kwargs: Dict[str, object] = {
                "signature_version": "s3v4",
                "connect_timeout": timeout,
                "read_timeout": timeout,
            }
            if force_path_style:
                config_kwargs["s3"] = {"addressing_style": "path"}

            client_kwargs: Dict[str, object] = {
                "endpoint_url": f"{scheme}://{self._endpoint}",
                "aws_access_key_id": access_key,
                "aws_secret_access_key": secret_key,
                "config": BotoConfig(**config_kwargs),
            }
            if region:
                client_kwargs["region_name"] = region

            session = boto3.session.Session()
            client = session.client("s3", **client_kwargs)

        self.client = client

        if verify:
            try:
                self.client.head_bucket(Bucket=self.bucket_name)
            except ClientError as exc:
                error = exc.response.get("Error", {})
                code = error.get("Code")
                message = error.get("Message") or str(exc)
                raise StorageError(f"Unable to access S3 bucket '{self.bucket_name}' ({code}): {message}") from exc
            except BotoCoreError as exc:
                raise StorageError(f"Unable to reach S3 endpoint '{self._endpoint}': {exc}") from exc

    @property
    def endpoint(self) -> str:
        return self._endpoint

    def iter_objects(self, cancel_requested: CancelCheck = None) -> Iterator[StoredObject]:
        paginator = self.client.get_paginator("list_objects_v2")
        pages = paginator.paginate(
            Bucket=self.bucket_name,
            PaginationConfig={"PageSize": LIST_PAGE_SIZE},
        )

        try:
            for page in pages:
                _raise_if_cancelled(cancel_requested, "S3 list_objects")
                for obj in page.get("Contents") or []:
                    key = obj.get("Key")
                    if not key:
                        continue
                    yield StoredObject(
                        key=key,
                        size=int(obj.get("Size") or 0),
                        last_modified=_as_utc(obj.get("LastModified")),
                        etag=(obj.get("ETag") or "").strip('"') or None,
                        content_type=obj.get("ContentType"),
                    )
        except self._client_errors as exc:
            raise StorageError(f"S3 list_objects failed: {exc}") from exc

    def presign_url(
        self,
        key: str,
        expiry_minutes: int,
        cancel_requested: CancelCheck = None,
    ) -> str:
        if expiry_minutes <= 0:
            raise ValueError("expiry_minutes must be greater than zero")
        _raise_if_cancelled(cancel_requested, "S3 presign")

        try:
            return self.client.generate_presigned_url(
                "get_object",
                Params={
                    "Bucket": self.bucket_name,
                    "Key": key,
                    "ResponseContentDisposition": "inline",
                },
                ExpiresIn=expiry_minutes * 60,
            )
        except self._client_errors as exc:
            raise StorageError(f"S3 presign failed for {key}: {exc}") from exc

    def open_object(self, key: str, cancel_requested: CancelCheck = None) -> ObjectStream:
        _raise_if_cancelled(cancel_requested, "S3 get_object")

        try:
            response = self.client.get_object(Bucket=self.bucket_name, Key=key)
        except self._client_error as exc:
            error = exc.response.get("Error", {})
            code = (error.get("Code") or "").lower()
            if code in {"nosuchkey", "404"}:
                raise StorageFileNotFound(f"Object not found in S3: {key}") from exc
            raise StorageError(f"S3 download failed: {exc}") from exc
        except self._client_errors as exc:
            raise StorageError(f"S3 download failed: {exc}") from exc

        body = response.get("Body")
        if body is None:
            raise StorageError("S3 returned an empty response body.")

        def _chunks() -> Iterator[bytes]:
            try:
                for chunk in body.iter_chunks(chunk_size=STREAM_CHUNK_SIZE):
                    _raise_if_cancelled(cancel_requested, "S3 object stream")
                    yield chunk
            except self._client_errors as exc:
                raise StorageError(f"S3 stream failed for {key}: {exc}") from exc

        return ObjectStream(
            key=key,
            content_type=response.get("ContentType"),
            size=response.get("ContentLength"),
            chunks=_chunks(),
            _close=body.close,
        )


def _as_utc(value: object) -> Optional[datetime]:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            return None
        return _as_utc(parsed)
    return None


def create_storage_backend(settings) -> StorageBackend:
    """Build the process-wide storage handle from loaded settings."""

    logger.debug("Using S3 storage backend at %s (bucket %s)", settings.s3_endpoint, settings.s3_bucket)
    return S3StorageBackend(
        endpoint=settings.s3_endpoint,
        bucket=settings.s3_bucket,
        access_key=settings.s3_access_key,
        secret_key=settings.s3_secret_key,
        secure=settings.s3_secure,
        region=settings.s3_region,
        force_path_style=settings.s3_force_path_style,
        timeout=settings.request_timeout,
    )


__all__ = [
    "CancelCheck",
    "ObjectStream",
    "S3StorageBackend",
    "StorageBackend",
    "StorageCancelled",
    "StorageError",
    "StorageFileNotFound",
    "create_storage_backend",
    "endpoint_authority",
]
