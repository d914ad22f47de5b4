"""Immutable listing snapshot with the lookup strategies used by the resolver."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from s3proxy.services.objects import StoredObject

ROOT_DIRECTORY = "Root"

# A fuzzy candidate is only accepted when its score is strictly above this.
FUZZY_ACCEPT_THRESHOLD = 30

FUZZY_EXACT_DIRECTORY = 100
FUZZY_NESTED_DIRECTORY = 50
FUZZY_CHARACTER_WEIGHT = 40


@dataclass(frozen=True)
class FuzzyMatch:
    """Best filename-anchored candidate for a request path."""

    candidate: Optional[StoredObject] = None
    score: int = 0

    @property
    def accepted(self) -> bool:
        return self.candidate is not None and self.score > FUZZY_ACCEPT_THRESHOLD


@dataclass(frozen=True)
class ObjectCollection:
    """Ordered, read-only sequence of stored objects for one request."""

    objects: Tuple[StoredObject, ...] = ()

    @classmethod
    def from_iterable(cls, objects: Iterable[StoredObject]) -> "ObjectCollection":
        return cls(tuple(objects))

    def __iter__(self) -> Iterator[StoredObject]:
        return iter(self.objects)

    def __len__(self) -> int:
        return len(self.objects)

    def filter_folders(self) -> "ObjectCollection":
        return ObjectCollection(tuple(obj for obj in self.objects if not obj.is_folder()))

    def filter_suspicious(self) -> "ObjectCollection":
        return ObjectCollection(tuple(obj for obj in self.objects if not obj.is_suspicious()))

    def find_exact(self, path: str) -> Optional[StoredObject]:
        return next((obj for obj in self.objects if obj.key == path), None)

    def find_case_insensitive(self, path: str) -> Optional[StoredObject]:
        folded = path.casefold()
        return next((obj for obj in self.objects if obj.key.casefold() == folded), None)

    def find_fuzzy(self, path: str) -> FuzzyMatch:
        """Return the best candidate sharing the request's filename.

        Only objects whose trailing component case-insensitively equals the
        request's are considered; they are ranked by how close their directory
        prefix is to the requested one. Ties keep the earliest candidate.
        """

        request_dir, sep, request_name = path.rpartition("/")
        if not sep:
            return FuzzyMatch()

        request_dir = request_dir.lower()
        request_name = request_name.casefold()

        best: Optional[StoredObject] = None
        best_score = 0
        for obj in self.objects:
            object_dir, obj_sep, object_name = obj.key.rpartition("/")
            if not obj_sep or object_name.casefold() != request_name:
                continue
            score = directory_similarity(request_dir, object_dir.lower())
            if score > best_score:
                best, best_score = obj, score

        return FuzzyMatch(candidate=best, score=best_score)

    def group_by_directory(self) -> List[Tuple[Optional[str], List[StoredObject]]]:
        """Group objects by directory prefix.

        Groups are ordered by directory name with root objects sorting under
        ``ROOT_DIRECTORY``; files inside a group are ordered by lowercase key.
        """

        grouped: Dict[Optional[str], List[StoredObject]] = {}
        for obj in self.objects:
            grouped.setdefault(obj.directory, []).append(obj)

        ordered = sorted(grouped, key=_directory_sort_key)
        return [
            (directory, sorted(grouped[directory], key=lambda item: item.key.lower()))
            for directory in ordered
        ]

    def directory_names(self) -> List[str]:
        """Return sorted distinct directory names, ``ROOT_DIRECTORY`` for root objects."""

        names: List[str] = []
        for directory, _ in self.group_by_directory():
            name = ROOT_DIRECTORY if directory is None else directory
            if name not in names:
                names.append(name)
        return names


def directory_similarity(request_dir: str, object_dir: str) -> int:
    """Score two lowercased directory prefixes on a 0-100 scale."""

    if request_dir == object_dir:
        return FUZZY_EXACT_DIRECTORY
    if request_dir in object_dir or object_dir in request_dir:
        return FUZZY_NESTED_DIRECTORY

    # Positional byte comparison over the shorter prefix.
    left = request_dir.encode("utf-8")
    right = object_dir.encode("utf-8")
    overlap = min(len(left), len(right))
    if overlap == 0:
        return 0
    similar = sum(1 for index in range(overlap) if left[index] == right[index])
    return (similar * FUZZY_CHARACTER_WEIGHT) // overlap


def _directory_sort_key(directory: Optional[str]) -> Tuple[str, int]:
    if directory is None:
        return ROOT_DIRECTORY, 0
    return directory, 1


__all__ = [
    "FUZZY_ACCEPT_THRESHOLD",
    "FuzzyMatch",
    "ObjectCollection",
    "ROOT_DIRECTORY",
    "directory_similarity",
]
