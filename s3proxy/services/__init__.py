"""Shared service exports."""

from .collection import FUZZY_ACCEPT_THRESHOLD, FuzzyMatch, ObjectCollection
from .objects import FOLDER_MARKER_SIZE, StoredObject
from .storage import (
    ObjectStream,
    S3StorageBackend,
    StorageBackend,
    StorageCancelled,
    StorageError,
    StorageFileNotFound,
    create_storage_backend,
)

__all__ = [
    "FOLDER_MARKER_SIZE",
    "FUZZY_ACCEPT_THRESHOLD",
    "FuzzyMatch",
    "ObjectCollection",
    "ObjectStream",
    "S3StorageBackend",
    "StorageBackend",
    "StorageCancelled",
    "StorageError",
    "StorageFileNotFound",
    "StoredObject",
    "create_storage_backend",
]
