import json
import logging

import pytest

from daybook.blobstore import FileBlobStore, InMemoryBlobStore, get_blob_store
from daybook.db import SQLiteBlobStore
from daybook.models import CollectionKind
from daybook.store import KeyedStore


@pytest.fixture(params=["memory", "file", "sqlite"])
def any_backend(request, tmp_path):
    if request.param == "memory":
        return InMemoryBlobStore()
    if request.param == "file":
        return FileBlobStore(str(tmp_path / "blobs"))
    return SQLiteBlobStore(str(tmp_path / "db" / "daybook.db"))


class TestBlobStores:
    def test_get_missing_returns_none(self, any_backend):
        assert any_backend.get("ptr_entries_v1") is None

    def test_set_get_overwrite_delete(self, any_backend):
        any_backend.set("ptr_todos_v1", b'{"a":1}')
        assert any_backend.get("ptr_todos_v1") == b'{"a":1}'
        any_backend.set("ptr_todos_v1", b"[]")
        assert any_backend.get("ptr_todos_v1") == b"[]"
        any_backend.delete("ptr_todos_v1")
        assert any_backend.get("ptr_todos_v1") is None
        # deleting an absent key is fine
        any_backend.delete("ptr_todos_v1")

    def test_file_store_rejects_path_like_keys(self, tmp_path):
        blobs = FileBlobStore(str(tmp_path))
        with pytest.raises(ValueError):
            blobs.set("../escape", b"x")

    def test_file_store_leaves_no_temp_files(self, tmp_path):
        blobs = FileBlobStore(str(tmp_path))
        blobs.set("ptr_drafts_v1", b"[]")
        blobs.set("ptr_drafts_v1", b"[1]")
        assert sorted(p.name for p in tmp_path.iterdir()) == ["ptr_drafts_v1.json"]

    def test_sqlite_store_survives_reopen(self, tmp_path):
        path = str(tmp_path / "daybook.db")
        SQLiteBlobStore(path).set("ptr_files_v1", b"[]")
        assert SQLiteBlobStore(path).get("ptr_files_v1") == b"[]"

    def test_factory_follows_backend_setting(self, settings, tmp_path):
        from dataclasses import replace

        assert isinstance(get_blob_store(settings), InMemoryBlobStore)
        assert isinstance(get_blob_store(replace(settings, storage_backend="file")), FileBlobStore)
        sqlite_settings = replace(settings, storage_backend="sqlite", sqlite_db_path=str(tmp_path / "x.db"))
        assert isinstance(get_blob_store(sqlite_settings), SQLiteBlobStore)


class TestKeyedStore:
    def test_keys_carry_prefix_and_version(self, store):
        assert store.key_for(CollectionKind.ENTRIES) == "ptr_entries_v1"
        assert store.key_for(CollectionKind.AUTOSAVE) == "ptr_draft_autosave_v1"
        assert KeyedStore(InMemoryBlobStore(), "x").key_for(CollectionKind.FILES) == "x_files_v1"

    def test_absent_key_returns_copy_of_default(self, store):
        default = []
        loaded = store.load(CollectionKind.ENTRIES, default)
        assert loaded == []
        loaded.append(1)
        assert default == []

    def test_save_then_load(self, any_backend):
        store = KeyedStore(any_backend)
        value = {"2025-02-01": [{"id": "a", "text": "Café", "completed": False}]}
        store.save(CollectionKind.TODOS, value)
        assert store.load(CollectionKind.TODOS, {}) == value

    def test_save_is_idempotent(self, store, backend):
        store.save(CollectionKind.DRAFTS, [{"id": "d1"}])
        first = backend.get("ptr_drafts_v1")
        store.save(CollectionKind.DRAFTS, [{"id": "d1"}])
        assert backend.get("ptr_drafts_v1") == first

    def test_corrupt_json_falls_back_to_default(self, store, backend, caplog):
        backend.set("ptr_entries_v1", b"{not json")
        with caplog.at_level(logging.WARNING, logger="daybook.store"):
            assert store.load(CollectionKind.ENTRIES, []) == []
        assert "ptr_entries_v1" in caplog.text

    def test_wrong_json_type_falls_back_to_default(self, store, backend):
        backend.set("ptr_entries_v1", json.dumps({"oops": True}).encode())
        assert store.load(CollectionKind.ENTRIES, []) == []

    def test_delete_removes_collection(self, store):
        store.save(CollectionKind.AUTOSAVE, {"content": "x"})
        store.delete(CollectionKind.AUTOSAVE)
        assert store.load(CollectionKind.AUTOSAVE, {}) == {}
