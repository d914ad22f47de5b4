"""Core gateway logic shared by the HTTP routes."""

from .errors import InvalidHost, ObjectNotFound, PresignedURLError, ProxyError, SuspiciousPath  # noqa: F401
from .listing import DirectoryGroup, ListFilesUseCase, ListedObject  # noqa: F401
from .proxy import ProxyFileUseCase, StreamedObject  # noqa: F401
from .resolver import ObjectResolver, decode_path  # noqa: F401

__all__ = [
    "DirectoryGroup",
    "InvalidHost",
    "ListFilesUseCase",
    "ListedObject",
    "ObjectNotFound",
    "ObjectResolver",
    "PresignedURLError",
    "ProxyError",
    "ProxyFileUseCase",
    "StreamedObject",
    "SuspiciousPath",
    "decode_path",
]
