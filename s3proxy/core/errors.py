"""Error kinds reported by the proxy and listing use cases."""

from __future__ import annotations


class ProxyError(Exception):
    """Base class for request-level gateway errors."""


class SuspiciousPath(ProxyError):
    """Raised when a raw or decoded request path looks like traversal."""


class ObjectNotFound(ProxyError):
    """Raised when a request path resolves to no bucket key."""


class InvalidHost(ProxyError):
    """Raised when a presigned URL points outside the configured endpoint."""


class PresignedURLError(ProxyError):
    """Raised when the storage backend returned an unparseable URL."""


__all__ = [
    "InvalidHost",
    "ObjectNotFound",
    "PresignedURLError",
    "ProxyError",
    "SuspiciousPath",
]
