"""Unit tests for docstore.backends.file — on-disk layout and filesystem failures."""

import os
from datetime import datetime, timezone

import pytest

from docstore.backends.file import (
    VERSION_FORMAT,
    FileDocumentStore,
    format_version,
    parse_version,
)
from docstore.engine.errors import (
    DocumentNotFoundError,
    StorageBackendError,
    StoreConfigError,
)
from docstore.engine.registry import new_store

STAMP = datetime(2026, 2, 14, 9, 30, 0, 120000, tzinfo=timezone.utc)


class TestVersionNames:
    def test_format(self):
        assert format_version(STAMP) == "2026-02-14T09:30:00.120000Z"

    def test_fixed_width(self):
        early = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        assert len(format_version(early)) == len(format_version(STAMP))

    def test_round_trip(self):
        assert parse_version(format_version(STAMP)) == STAMP

    def test_foreign_name(self):
        with pytest.raises(ValueError):
            parse_version("notes.txt")

    def test_format_constant(self):
        assert VERSION_FORMAT.endswith("Z")


class TestFromURI:
    def test_absolute_path(self, tmp_path):
        with new_store(f"file://{tmp_path}/docs") as store:
            assert isinstance(store, FileDocumentStore)
            assert store.root == tmp_path / "docs"

    def test_path_is_normalised(self, tmp_path):
        with new_store(f"file://{tmp_path}/a/../docs/") as store:
            assert store.root == tmp_path / "docs"

    def test_quoted_path(self, tmp_path):
        with new_store(f"file://{tmp_path}/my%20docs") as store:
            assert store.root == tmp_path / "my docs"

    def test_host_rejected(self):
        with pytest.raises(StoreConfigError):
            new_store("file://docs/wiki")

    def test_empty_path_rejected(self):
        with pytest.raises(StoreConfigError):
            new_store("file://")

    @pytest.mark.parametrize("uri", ["file:///", "file:////", "file:///tmp/.."])
    def test_filesystem_root_rejected(self, uri):
        with pytest.raises(StoreConfigError):
            new_store(uri)

    def test_modes_from_config(self, tmp_path, write_config):
        write_config('files:\n  dir_mode: "0700"\n  file_mode: "0600"\n')
        with new_store(f"file://{tmp_path}/docs") as store:
            store.update("/Foo", "x")
        doc_dir = tmp_path / "docs" / "Foo"
        (version,) = list(doc_dir.iterdir())
        assert version.stat().st_mode & 0o777 == 0o600 & ~_umask()


def _umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


class TestLayout:
    def test_version_file(self, file_store):
        doc = file_store.update("/Foo/Bar", "hello")
        path = file_store.root / "Foo" / "Bar" / format_version(doc.timestamp)
        assert path.read_text(encoding="utf-8") == "hello"

    def test_children_live_in_parent_dir(self, file_store):
        file_store.update("/Foo", "parent")
        file_store.update("/Foo/Bar", "child")
        entries = {p.name for p in (file_store.root / "Foo").iterdir()}
        assert "Bar" in entries
        assert len(entries) == 2
        assert [d.content for d in file_store.get_all("/Foo")] == ["parent"]

    def test_child_named_like_parent_version(self, file_store):
        parent = file_store.update("/a", "parent")
        with pytest.raises(StorageBackendError) as exc:
            file_store.update("/a/" + format_version(parent.timestamp), "child")
        assert exc.value.operation == "update"
        assert file_store.get("/a").content == "parent"

    def test_content_stored_as_utf8(self, file_store):
        doc = file_store.update("/Foo", "世界")
        path = file_store.root / "Foo" / format_version(doc.timestamp)
        assert path.read_bytes() == "世界".encode("utf-8")

    def test_root_created_lazily(self, file_store):
        assert not file_store.root.exists()
        assert file_store.get_descendants("") == []
        file_store.update("/Foo", "x")
        assert file_store.root.is_dir()

    def test_empty_dirs_pruned(self, file_store):
        doc = file_store.update("/a/b/c", "x")
        file_store.revert("/a/b/c", doc.timestamp)
        assert not (file_store.root / "a").exists()
        assert file_store.root.exists()

    def test_parent_dir_kept_for_remaining_versions(self, file_store):
        file_store.update("/a", "a")
        doc = file_store.update("/a/b", "b")
        file_store.revert("/a/b", doc.timestamp)
        assert (file_store.root / "a").is_dir()
        assert not (file_store.root / "a" / "b").exists()

    def test_partial_discard_keeps_dir(self, file_store):
        file_store.update("/a", "v1")
        doc = file_store.update("/a", "v2")
        file_store.revert("/a", doc.timestamp)
        assert (file_store.root / "a").is_dir()

    def test_directory_without_versions_is_not_a_document(self, file_store):
        file_store.update("/a/b/c", "x")
        with pytest.raises(DocumentNotFoundError):
            file_store.get("/a/b")
        assert file_store.get_descendants("/a") == ["/a/b/c"]

    def test_clear_keeps_root(self, file_store):
        file_store.update("/a/b", "x")
        file_store.update("/c", "y")
        file_store.clear()
        assert file_store.root.is_dir()
        assert list(file_store.root.iterdir()) == []


class TestForeignFiles:
    def test_malformed_version_file(self, file_store):
        file_store.update("/Foo", "x")
        (file_store.root / "Foo" / "notes.txt").write_text("junk")
        with pytest.raises(StorageBackendError) as exc:
            file_store.get("/Foo")
        assert exc.value.backend == "file"
        assert exc.value.operation == "get"

    def test_invalid_utf8(self, file_store):
        (file_store.root / "Foo").mkdir(parents=True)
        (file_store.root / "Foo" / format_version(STAMP)).write_bytes(b"\xff\xfe")
        with pytest.raises(StorageBackendError):
            file_store.get_all("/Foo")

    def test_hand_written_version_is_read(self, file_store):
        (file_store.root / "Foo").mkdir(parents=True)
        (file_store.root / "Foo" / format_version(STAMP)).write_text("by hand")
        doc = file_store.get("/Foo")
        assert doc.content == "by hand"
        assert doc.timestamp == STAMP

    def test_invalid_directory_names_skipped(self, file_store):
        file_store.update("/ok", "x")
        (file_store.root / "café").mkdir()
        (file_store.root / "café" / format_version(STAMP)).write_text("x")
        assert file_store.get_descendants("") == ["/ok"]

    def test_document_path_is_a_file(self, file_store):
        file_store.root.mkdir(parents=True)
        (file_store.root / "Foo").write_text("not a directory")
        with pytest.raises(DocumentNotFoundError):
            file_store.get("/Foo")
        with pytest.raises(StorageBackendError):
            file_store.update("/Foo", "x")


class TestIndependentInstances:
    def test_same_directory(self, tmp_path):
        uri = f"file://{tmp_path}/docs"
        with new_store(uri) as a, new_store(uri) as b:
            a.update("/Foo", "from a")
            assert b.get("/Foo").content == "from a"
            b.clear()
            with pytest.raises(DocumentNotFoundError):
                a.get("/Foo")

    def test_copy_shares_lineage(self, file_store):
        copy = file_store.copy()
        try:
            assert copy._lineage is file_store._lineage
            assert copy.root == file_store.root
        finally:
            copy.close()
        assert file_store._lineage.shares == 1
