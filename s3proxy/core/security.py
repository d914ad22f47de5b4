"""Request path filtering and presigned redirect validation."""

from __future__ import annotations

import logging
from urllib.parse import urlsplit

from s3proxy.core.errors import InvalidHost, PresignedURLError, SuspiciousPath
from s3proxy.services.objects import contains_suspicious_pattern
from s3proxy.services.storage import endpoint_authority

logger = logging.getLogger(__name__)


def is_suspicious_path(path: str) -> bool:
    return contains_suspicious_pattern(path)


def check_path(path: str, *, stage: str = "raw") -> None:
    """Raise :class:`SuspiciousPath` if ``path`` contains ``..`` or ``//``."""

    if is_suspicious_path(path):
        logger.warning("Rejected suspicious %s path: %s", stage, path)
        raise SuspiciousPath(f"Suspicious path detected: {path}")


def endpoint_hostname(endpoint: str) -> str:
    """Strip any scheme and ``:port`` suffix from the configured endpoint."""

    authority = endpoint_authority(endpoint)
    return authority.split(":", 1)[0].lower()


def validate_presigned_host(url: str, endpoint: str) -> str:
    """Ensure ``url`` targets the configured endpoint host or one of its subdomains.

    Returns the URL unchanged on success.

    Raises:
        PresignedURLError: when the URL cannot be parsed.
        InvalidHost: when the URL host is outside the endpoint's DNS suffix.
    """

    try:
        host = urlsplit(url).hostname
    except ValueError as exc:
        logger.error("Failed to parse presigned URL: %s", url)
        raise PresignedURLError(f"Failed to parse presigned URL: {exc}") from exc
    if not host:
        logger.error("Presigned URL has no host: %s", url)
        raise PresignedURLError("Presigned URL has no host")

    allowed = endpoint_hostname(endpoint)
    if allowed and (host == allowed or host.endswith("." + allowed)):
        return url

    logger.error("URL host not allowed: %s (endpoint %s)", host, allowed)
    raise InvalidHost(f"Invalid host in presigned URL: {host}")


__all__ = [
    "check_path",
    "endpoint_hostname",
    "is_suspicious_path",
    "validate_presigned_host",
]
