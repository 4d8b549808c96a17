import json
import os

import pytest

from shared.utils.constants import TOTAL_SPEND_STORAGE_KEY
from shared.utils.exceptions import StorageException
from vendorsync_api.infrastructure.repositories.file_key_value_store import FileKeyValueStore
from vendorsync_api.infrastructure.repositories.in_memory_key_value_store import InMemoryKeyValueStore


class TestFileKeyValueStore:

    @pytest.fixture
    def store_path(self, tmp_path):
        return str(tmp_path / "state" / "store.json")

    def test_values_survive_a_new_instance(self, store_path):
        FileKeyValueStore(store_path).set_item(TOTAL_SPEND_STORAGE_KEY, "1234.5")

        assert FileKeyValueStore(store_path).get_item(TOTAL_SPEND_STORAGE_KEY) == "1234.5"

    def test_missing_key_and_file(self, store_path):
        store = FileKeyValueStore(store_path)
        assert store.get_item("anything") is None

    def test_remove_item(self, store_path):
        store = FileKeyValueStore(store_path)
        store.set_item("a", "1")
        store.set_item("b", "2")

        store.remove_item("a")
        store.remove_item("never-set")

        with open(store_path, "r", encoding="utf-8") as f:
            assert json.load(f) == {"b": "2"}

    def test_corrupt_file_reads_as_empty(self, store_path, tmp_path):
        (tmp_path / "state").mkdir()
        with open(store_path, "w", encoding="utf-8") as f:
            f.write("{not json")

        store = FileKeyValueStore(store_path)

        assert store.get_item(TOTAL_SPEND_STORAGE_KEY) is None
        store.set_item(TOTAL_SPEND_STORAGE_KEY, "10")
        assert store.get_item(TOTAL_SPEND_STORAGE_KEY) == "10"

    def test_unwritable_location_raises(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("file, not a directory")
        store = FileKeyValueStore(str(blocker / "store.json"))

        with pytest.raises(StorageException):
            store.set_item("a", "1")

    def test_failed_replace_leaves_no_temp_file(self, store_path, tmp_path, monkeypatch):
        store = FileKeyValueStore(store_path)
        store.set_item("a", "1")

        def failing_replace(src, dst):
            raise OSError("rename refused")

        monkeypatch.setattr(os, "replace", failing_replace)

        with pytest.raises(StorageException, match="rename refused"):
            store.set_item("a", "2")

        assert os.listdir(tmp_path / "state") == ["store.json"]
        assert store.get_item("a") == "1"


class TestInMemoryKeyValueStore:

    def test_set_get_remove(self):
        store = InMemoryKeyValueStore()
        store.set_item("a", 5)

        assert store.get_item("a") == "5"
        store.remove_item("a")
        store.remove_item("a")
        assert store.get_item("a") is None
