"""Bucket listing use case: JSON entries and the grouped HTML view model."""

from __future__ import annotations

import html
from dataclasses import dataclass, field
from typing import List, Optional
from urllib.parse import quote_plus

from s3proxy.services.collection import ObjectCollection
from s3proxy.services.objects import StoredObject
from s3proxy.services.storage import CancelCheck, StorageBackend

ROOT_DISPLAY_NAME = "Root Directory"


@dataclass(frozen=True)
class ListedObject:
    """One downloadable object as shown to clients."""

    name: str
    url: str
    display_name: Optional[str] = None


@dataclass(frozen=True)
class DirectoryGroup:
    """Files sharing a directory prefix, ready for template rendering."""

    directory: Optional[str]
    display_name: str
    files: List[ListedObject] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.files)


def object_url(base_url: str, key: str) -> str:
    return f"{base_url}/{quote_plus(key)}"


class ListFilesUseCase:
    """List the visible objects of the bucket."""

    def __init__(self, storage: StorageBackend):
        self._storage = storage

    def _visible_objects(self, cancel_requested: CancelCheck = None) -> ObjectCollection:
        collection = ObjectCollection.from_iterable(self._storage.iter_objects(cancel_requested))
        return collection.filter_folders().filter_suspicious()

    def list_json(self, base_url: str, cancel_requested: CancelCheck = None) -> List[ListedObject]:
        """Return ``name``/``url`` pairs for every non-folder, non-suspicious object."""

        return [
            ListedObject(name=obj.key, url=object_url(base_url, obj.key))
            for obj in self._visible_objects(cancel_requested)
        ]

    def list_view(self, base_url: str, cancel_requested: CancelCheck = None) -> List[DirectoryGroup]:
        """Return the visible objects grouped by directory for HTML rendering."""

        groups: List[DirectoryGroup] = []
        for directory, objects in self._visible_objects(cancel_requested).group_by_directory():
            groups.append(
                DirectoryGroup(
                    directory=directory,
                    display_name=ROOT_DISPLAY_NAME if directory is None else html.escape(directory),
                    files=[self._view_entry(base_url, obj) for obj in objects],
                )
            )
        return groups

    @staticmethod
    def _view_entry(base_url: str, obj: StoredObject) -> ListedObject:
        return ListedObject(
            name=obj.key,
            url=object_url(base_url, obj.key),
            display_name=html.escape(obj.filename),
        )


__all__ = [
    "DirectoryGroup",
    "ListFilesUseCase",
    "ListedObject",
    "ROOT_DISPLAY_NAME",
    "object_url",
]
