"""Tests for the host resource model and file storage."""

import threading

import pytest

from metadata_engine.resources import LocalFileStore, PropertyCatalog, PropertyValue, RemoteFileStore


class TestLocalFileStore:
    """Original files resolve inside ``<base_dir>/original`` only."""

    @pytest.fixture
    def file_store(self, tmp_path):
        (tmp_path / "files" / "original").mkdir(parents=True)
        return LocalFileStore(tmp_path / "files")

    def test_resolves_storage_name(self, file_store, media, tmp_path):
        assert file_store.local_path(media) == (tmp_path / "files" / "original" / "photo.jpg").resolve()

    def test_subdirectory_allowed(self, file_store, media, tmp_path):
        media.filename = "2024/photo.jpg"
        assert file_store.local_path(media) == (tmp_path / "files" / "original" / "2024" / "photo.jpg").resolve()

    def test_no_filename(self, file_store, media):
        media.filename = None
        assert file_store.local_path(media) is None

    def test_absolute_filename_rejected(self, file_store, media, tmp_path):
        secret = tmp_path / "secret.jpg"
        secret.write_bytes(b"jpeg")
        media.filename = str(secret)

        assert file_store.local_path(media) is None

    @pytest.mark.parametrize("filename", ["../secret.jpg", "../../secret.jpg", "sub/../../secret.jpg", ".."])
    def test_parent_traversal_rejected(self, file_store, media, filename):
        media.filename = filename
        assert file_store.local_path(media) is None

    def test_symlink_out_of_store_rejected(self, file_store, media, tmp_path):
        secret = tmp_path / "secret.jpg"
        secret.write_bytes(b"jpeg")
        (tmp_path / "files" / "original" / "link.jpg").symlink_to(secret)
        media.filename = "link.jpg"

        assert file_store.local_path(media) is None

    def test_remote_store_has_no_paths(self, media):
        assert RemoteFileStore().local_path(media) is None


class TestResourceValues:
    """Value batches on a shared item."""

    @pytest.fixture
    def creator(self):
        return PropertyCatalog.default().find_by_term("dcterms:creator")

    def test_apply_value_changes(self, item, creator):
        old = PropertyValue(resource_id=item.id, property=creator, value="Old")
        kept = PropertyValue(resource_id=item.id, property=creator, value="Kept")
        item.values.extend([old, kept])
        new = PropertyValue(resource_id=item.id, property=creator, value="New")

        item.apply_value_changes([old], [new])

        assert [v.value for v in item.values] == ["Kept", "New"]

    def test_batch_waits_for_lock_holder(self, item, creator):
        value = PropertyValue(resource_id=item.id, property=creator, value="Jane")
        done = threading.Event()

        def apply():
            item.apply_value_changes([], [value])
            done.set()

        with item.lock:
            worker = threading.Thread(target=apply)
            worker.start()
            assert not done.wait(0.2)
            assert item.values == []
        worker.join(timeout=5)

        assert done.is_set()
        assert item.values == [value]

    def test_concurrent_batches_keep_every_value(self, item, creator):
        def add(n):
            for i in range(50):
                item.apply_value_changes([], [PropertyValue(resource_id=item.id, property=creator, value=f"{n}-{i}")])

        threads = [threading.Thread(target=add, args=(n,)) for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(item.values_of(creator)) == 400


def test_catalog_ids_are_sequential():
    catalog = PropertyCatalog({"dcterms": ["title", "creator", "title"], "extractmetadata": ["exif"]})

    assert len(catalog) == 3
    assert [catalog.find_by_term(t).id for t in ["dcterms:title", "dcterms:creator", "extractmetadata:exif"]] == [
        1,
        2,
        3,
    ]
