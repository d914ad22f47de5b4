"""Tiered mapping of client request paths onto real bucket keys."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import unquote_plus

from s3proxy.services.collection import ObjectCollection
from s3proxy.services.storage import CancelCheck, StorageBackend

logger = logging.getLogger(__name__)

_MALFORMED_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


@dataclass(frozen=True)
class DecodedPath:
    """Outcome of percent-decoding a request path."""

    raw: str
    decoded: str
    ok: bool

    @property
    def changed(self) -> bool:
        return self.ok and self.decoded != self.raw


def decode_path(raw: str) -> DecodedPath:
    """Query-unescape ``raw``; on failure the raw string is kept.

    ``+`` decodes to a space. A ``%`` not followed by two hex digits, or an
    escape sequence that does not form valid UTF-8, counts as a failure.
    """

    if _MALFORMED_ESCAPE.search(raw):
        return DecodedPath(raw=raw, decoded=raw, ok=False)
    try:
        decoded = unquote_plus(raw, errors="strict")
    except UnicodeDecodeError:
        return DecodedPath(raw=raw, decoded=raw, ok=False)
    return DecodedPath(raw=raw, decoded=decoded, ok=True)


class ObjectResolver:
    """Resolve request paths against a freshly fetched bucket listing.

    Tiers are tried in order and the first hit wins: exact key, exact key on
    the decoded path, case-insensitive key (raw then decoded) and finally a
    filename-anchored fuzzy match scored on directory similarity.
    """

    def __init__(self, storage: StorageBackend):
        self._storage = storage

    def fetch_listing(self, cancel_requested: CancelCheck = None) -> ObjectCollection:
        return ObjectCollection.from_iterable(self._storage.iter_objects(cancel_requested))

    def resolve(self, raw_path: str, cancel_requested: CancelCheck = None) -> Optional[str]:
        """Return the canonical key for ``raw_path`` or ``None`` if nothing matches.

        Raises:
            StorageError: when the listing cannot be fetched.
        """

        decoded = decode_path(raw_path)
        if decoded.changed:
            logger.debug("Decoded path: %s -> %s", raw_path, decoded.decoded)

        if not raw_path:
            return None

        collection = self.fetch_listing(cancel_requested)

        match = collection.find_exact(raw_path)
        if match is not None:
            logger.debug("Found exact match: %s", match.key)
            return match.key

        if decoded.changed:
            match = collection.find_exact(decoded.decoded)
            if match is not None:
                logger.debug("Found exact match with decoded path: %s", match.key)
                return match.key

        match = collection.find_case_insensitive(raw_path)
        if match is not None:
            logger.info("Found case-insensitive match: %s for request: %s", match.key, raw_path)
            return match.key

        if decoded.changed:
            match = collection.find_case_insensitive(decoded.decoded)
            if match is not None:
                logger.info(
                    "Found case-insensitive match with decoded path: %s for request: %s",
                    match.key,
                    decoded.decoded,
                )
                return match.key

        analysis_path = decoded.decoded if decoded.changed else raw_path
        fuzzy = collection.find_fuzzy(analysis_path)
        if fuzzy.accepted:
            logger.info(
                "Found fuzzy match: %s (score: %d) for request: %s",
                fuzzy.candidate.key,
                fuzzy.score,
                raw_path,
            )
            return fuzzy.candidate.key

        logger.debug("Object not found in bucket: %s", raw_path)
        return None


__all__ = ["DecodedPath", "ObjectResolver", "decode_path"]
