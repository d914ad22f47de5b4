"""Stored object model shared by the listing and resolver code paths."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

# Objects at or below this size whose name carries no extension are treated as
# directory markers. Some S3 implementations emit zero-byte placeholders for
# folders, with or without the trailing slash.
FOLDER_MARKER_SIZE = 0

SUSPICIOUS_PATTERNS = ("..", "//")


@dataclass(frozen=True)
class StoredObject:
    """A single object as reported by the bucket listing."""

    key: str
    size: int = 0
    last_modified: Optional[datetime] = None
    etag: Optional[str] = None
    content_type: Optional[str] = None

    @property
    def filename(self) -> str:
        """Return the trailing path component of the key."""
        if not self.key:
            return ""
        return self.key.rsplit("/", 1)[-1]

    @property
    def directory(self) -> Optional[str]:
        """Return everything before the last ``/`` or ``None`` for root objects."""
        head, sep, _ = self.key.rpartition("/")
        return head if sep else None

    def is_folder(self) -> bool:
        if not self.key:
            return False
        if self.key.endswith("/"):
            return True
        if self.size <= FOLDER_MARKER_SIZE:
            name = self.filename
            return name == "" or "." not in name
        return False

    def is_suspicious(self) -> bool:
        return contains_suspicious_pattern(self.key)


def contains_suspicious_pattern(value: str) -> bool:
    """Return True when ``value`` contains a traversal-like pattern."""

    return any(pattern in value for pattern in SUSPICIOUS_PATTERNS)


__all__ = [
    "FOLDER_MARKER_SIZE",
    "SUSPICIOUS_PATTERNS",
    "StoredObject",
    "contains_suspicious_pattern",
]
