"""Repository-wide pytest fixtures."""

from __future__ import annotations

from collections.abc import Generator
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple
from urllib.parse import quote

import pytest

from s3proxy.config import Settings
from s3proxy.services.objects import StoredObject
from s3proxy.services.storage import (
    ObjectStream,
    StorageBackend,
    StorageCancelled,
    StorageFileNotFound,
)

_CONFIG_ENV = (
    "CONFIG_FILE",
    "LISTEN",
    "PPROF",
    "LOG_LEVEL",
    "CLOUDFLARE",
    "ENABLE_LIST",
    "PROXY_MODE",
    "PRESIGN_EXPIRY_MINUTES",
    "REQUEST_TIMEOUT",
    "S3_ENDPOINT",
    "S3_BUCKET",
    "S3_ACCESS_KEY",
    "S3_SECRET_KEY",
    "S3_SECURE",
    "S3_REGION",
    "S3_FORCE_PATH_STYLE",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> Generator[None, None, None]:
    """Keep the developer's shell configuration out of the tests."""

    for name in _CONFIG_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    yield


class StubStorage(StorageBackend):
    """In-memory storage backend recording every call it receives."""

    def __init__(
        self,
        objects: Iterable[StoredObject] = (),
        *,
        endpoint: str = "s3.example.net",
        presigned_host: Optional[str] = None,
        list_error: Optional[Exception] = None,
        presign_error: Optional[Exception] = None,
        bodies: Optional[Dict[str, bytes]] = None,
        content_types: Optional[Dict[str, str]] = None,
    ) -> None:
        self.objects = list(objects)
        self._endpoint = endpoint
        self.presigned_host = presigned_host
        self.list_error = list_error
        self.presign_error = presign_error
        self.bodies = dict(bodies or {})
        self.content_types = dict(content_types or {})
        self.list_calls = 0
        self.presign_calls: List[Tuple[str, int]] = []
        self.open_calls: List[str] = []

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def calls(self) -> int:
        return self.list_calls + len(self.presign_calls) + len(self.open_calls)

    def iter_objects(self, cancel_requested=None) -> Iterator[StoredObject]:
        self.list_calls += 1
        if self.list_error is not None:
            raise self.list_error
        for obj in self.objects:
            if cancel_requested is not None and cancel_requested():
                raise StorageCancelled("listing cancelled")
            yield obj

    def presign_url(self, key: str, expiry_minutes: int, cancel_requested=None) -> str:
        self.presign_calls.append((key, expiry_minutes))
        if self.presign_error is not None:
            raise self.presign_error
        host = self.presigned_host or self._endpoint
        return (
            f"https://{host}/bucket/{quote(key)}"
            f"?response-content-disposition=inline&X-Amz-Expires={expiry_minutes * 60}"
        )

    def open_object(self, key: str, cancel_requested=None) -> ObjectStream:
        self.open_calls.append(key)
        if key not in self.bodies:
            raise StorageFileNotFound(f"missing {key}")
        body = self.bodies[key]
        return ObjectStream(
            key=key,
            content_type=self.content_types.get(key),
            size=len(body),
            chunks=iter([body[:4], body[4:]]) if len(body) > 4 else iter([body]),
        )


def make_settings(**overrides) -> Settings:
    values = {
        "app_name": "s3proxy",
        "app_version": "test",
        "listen": ":2804",
        "listen_host": "0.0.0.0",
        "listen_port": 2804,
        "pprof": None,
        "cloudflare": True,
        "enable_list": True,
        "request_timeout": 10.0,
        "proxy_mode": "redirect",
        "presign_expiry_minutes": 60,
        "log_level": 1,
        "s3_endpoint": "s3.example.net",
        "s3_bucket": "bucket",
        "s3_access_key": "access",
        "s3_secret_key": "secret",
        "s3_secure": True,
        "s3_region": "us-east-1",
        "s3_force_path_style": False,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def stub_storage() -> Callable[..., StubStorage]:
    """Factory for in-memory storage backends."""

    def _factory(objects: Iterable[StoredObject] = (), **kwargs) -> StubStorage:
        return StubStorage(objects, **kwargs)

    return _factory


@pytest.fixture
def settings_factory() -> Callable[..., Settings]:
    return make_settings


@pytest.fixture
def api_client(settings_factory):
    """Factory returning a TestClient wired to the given storage."""
    from fastapi.testclient import TestClient

    from s3proxy.api.main import create_app

    def _factory(storage: StorageBackend, **overrides) -> TestClient:
        app = create_app(settings_factory(**overrides), storage)
        return TestClient(app, follow_redirects=False)

    return _factory
