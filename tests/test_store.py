from __future__ import annotations

import os

import pytest

from districts import store as store_mod
from districts.errors import StoreWriteError
from districts.store import FilesystemObjectStore, MemoryObjectStore, ObjectStore, open_store


def test_filesystem_round_trip(tmp_path):
    store = FilesystemObjectStore(tmp_path / "objects")
    assert store.get("districts.json") is None
    assert store.head("districts.json") is None

    meta = store.put(
        "districts.json",
        '[{"c":11,"n":"北京市"}]'.encode("utf-8"),
        content_type="application/json",
        custom_metadata={"updatedAt": "2024-01-01T00:00:00.000Z"},
    )

    head = store.head("districts.json")
    obj = store.get("districts.json")
    assert head == meta
    assert obj is not None
    assert obj.body.decode("utf-8") == '[{"c":11,"n":"北京市"}]'
    assert obj.meta.content_type == "application/json"
    assert obj.meta.custom_metadata == {"updatedAt": "2024-01-01T00:00:00.000Z"}
    assert obj.meta.size == len(obj.body)
    assert head.uploaded.tzinfo is not None


def test_filesystem_overwrite_leaves_no_temp_files(tmp_path):
    store = FilesystemObjectStore(tmp_path)
    store.put("districts.json", b"[1]")
    store.put("districts.json", b"[2]")
    assert store.get("districts.json").body == b"[2]"
    assert sorted(p.name for p in tmp_path.iterdir()) == ["districts.json"]


def test_failed_replace_keeps_previous_object(tmp_path, monkeypatch):
    store = FilesystemObjectStore(tmp_path)
    store.put("districts.json", b"[1]")

    def broken_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(store_mod.os, "replace", broken_replace)
    with pytest.raises(StoreWriteError):
        store.put("districts.json", b"[2]")
    monkeypatch.setattr(store_mod.os, "replace", os.replace)

    assert store.get("districts.json").body == b"[1]"
    assert [p.name for p in tmp_path.iterdir()] == ["districts.json"]


def test_rejects_escaping_keys(tmp_path):
    store = FilesystemObjectStore(tmp_path)
    with pytest.raises(ValueError):
        store.put("../outside.json", b"{}")


def test_memory_store_and_protocol():
    store = MemoryObjectStore()
    assert isinstance(store, ObjectStore)
    meta = store.put("k", b"abc", content_type="text/plain")
    assert store.head("k") == meta
    assert store.get("k").body == b"abc"
    assert meta.etag == store.get("k").meta.etag


def test_open_store(tmp_path):
    assert isinstance(open_store(str(tmp_path)), FilesystemObjectStore)
    assert isinstance(open_store(None), MemoryObjectStore)
