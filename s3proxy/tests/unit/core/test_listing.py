"""Tests for the bucket listing use case."""

from __future__ import annotations

import pytest

from s3proxy.core.listing import ROOT_DISPLAY_NAME, ListFilesUseCase, object_url
from s3proxy.services.objects import StoredObject
from s3proxy.services.storage import StorageError

BASE_URL = "https://files.example.org"


def _listing():
    return [
        StoredObject(key="a/x.txt", size=5),
        StoredObject(key="root.txt", size=3),
        StoredObject(key="a/", size=0),
        StoredObject(key="emptydir", size=0),
        StoredObject(key="bad/../secret.txt", size=8),
        StoredObject(key="Zeta/y.txt", size=1),
        StoredObject(key="b/B.txt", size=2),
        StoredObject(key="b/a.txt", size=2),
    ]


def test_list_json_hides_folders_and_suspicious_keys(stub_storage) -> None:
    entries = ListFilesUseCase(stub_storage(_listing())).list_json(BASE_URL)

    names = [entry.name for entry in entries]
    assert names == ["a/x.txt", "root.txt", "Zeta/y.txt", "b/B.txt", "b/a.txt"]
    assert all(".." not in name and "//" not in name for name in names)


def test_list_json_urls_round_trip_to_keys(stub_storage) -> None:
    keys = ["docs/annual report.pdf", "with+plus.txt", "ünïcode/файл.txt"]
    storage = stub_storage([StoredObject(key=key, size=1) for key in keys])

    entries = ListFilesUseCase(storage).list_json(BASE_URL)

    assert [entry.url for entry in entries] == [object_url(BASE_URL, key) for key in keys]
    assert entries[0].url == f"{BASE_URL}/docs%2Fannual+report.pdf"
    assert entries[1].url == f"{BASE_URL}/with%2Bplus.txt"


def test_list_view_groups_and_sorts(stub_storage) -> None:
    groups = ListFilesUseCase(stub_storage(_listing())).list_view(BASE_URL)

    assert [group.directory for group in groups] == [None, "Zeta", "a", "b"]
    assert groups[0].display_name == ROOT_DISPLAY_NAME
    assert [item.name for item in groups[0].files] == ["root.txt"]
    assert [item.display_name for item in groups[3].files] == ["a.txt", "B.txt"]
    assert [group.count for group in groups] == [1, 1, 1, 2]


def test_list_view_escapes_names(stub_storage) -> None:
    storage = stub_storage([StoredObject(key="<b>dir</b>/a&b \"q\".txt", size=1)])

    (group,) = ListFilesUseCase(storage).list_view(BASE_URL)

    assert group.display_name == "&lt;b&gt;dir&lt;/b&gt;"
    assert group.files[0].display_name == "a&amp;b &quot;q&quot;.txt"
    assert group.files[0].name == "<b>dir</b>/a&b \"q\".txt"


def test_real_root_directory_is_not_merged_with_root_objects(stub_storage) -> None:
    storage = stub_storage(
        [StoredObject(key="Root/inner.txt", size=1), StoredObject(key="top.txt", size=1)]
    )

    groups = ListFilesUseCase(storage).list_view(BASE_URL)

    assert [(group.directory, group.display_name) for group in groups] == [
        (None, ROOT_DISPLAY_NAME),
        ("Root", "Root"),
    ]


def test_empty_bucket(stub_storage) -> None:
    use_case = ListFilesUseCase(stub_storage())

    assert use_case.list_json(BASE_URL) == []
    assert use_case.list_view(BASE_URL) == []


def test_storage_failure_propagates(stub_storage) -> None:
    use_case = ListFilesUseCase(stub_storage(list_error=StorageError("denied")))

    with pytest.raises(StorageError):
        use_case.list_json(BASE_URL)
