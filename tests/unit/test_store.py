"""
Unit tests for JsonStore
"""

import json

import pytest

from src.utils.store import REGISTRY_KEY, SESSION_KEY, JsonStore, quiz_progress_key


class TestJsonStore:
    """Key-value persistence of JSON documents."""

    def test_creates_storage_directory(self, tmp_path):
        storage_dir = tmp_path / "nested" / "data"

        JsonStore(storage_dir=storage_dir)

        assert storage_dir.is_dir()

    def test_get_missing_key_returns_none(self, store):
        assert store.get(SESSION_KEY) is None
        assert store.contains(SESSION_KEY) is False

    def test_set_then_get_returns_document(self, store):
        # Arrange
        document = [{"id": "1", "name": "Asha"}]

        # Act
        store.set(REGISTRY_KEY, document)

        # Assert
        assert store.get(REGISTRY_KEY) == document
        assert store.contains(REGISTRY_KEY)

    def test_set_replaces_previous_document(self, store):
        store.set(SESSION_KEY, {"id": "1"})
        store.set(SESSION_KEY, {"id": "2"})

        assert store.get(SESSION_KEY) == {"id": "2"}

    def test_set_leaves_no_temporary_file(self, store):
        store.set(SESSION_KEY, {"id": "1"})

        leftovers = list(store.storage_dir.glob("*.tmp"))
        assert leftovers == []

    def test_corrupted_document_is_discarded(self, store):
        # Arrange
        path = store.storage_dir / f"{SESSION_KEY}.json"
        path.write_text("{not json", encoding="utf-8")

        # Act
        result = store.get(SESSION_KEY)

        # Assert
        assert result is None
        assert not path.exists()

    def test_unserializable_document_raises_ioerror(self, store):
        with pytest.raises(IOError):
            store.set(SESSION_KEY, {"when": object()})
        assert store.get(SESSION_KEY) is None

    def test_remove_deletes_document(self, store):
        store.set(SESSION_KEY, {"id": "1"})

        store.remove(SESSION_KEY)

        assert store.get(SESSION_KEY) is None

    def test_remove_missing_key_is_ignored(self, store):
        store.remove("never-written")

    @pytest.mark.parametrize("key", ["", "../escape", "a/b", ".hidden"])
    def test_invalid_keys_are_rejected(self, store, key):
        with pytest.raises(ValueError, match="Invalid store key"):
            store.get(key)

    def test_documents_are_plain_json_files(self, store):
        store.set(REGISTRY_KEY, [{"id": "1"}])

        raw = (store.storage_dir / f"{REGISTRY_KEY}.json").read_text(encoding="utf-8")
        assert json.loads(raw) == [{"id": "1"}]

    def test_quiz_progress_key_is_per_user(self):
        assert quiz_progress_key("1718000000000") == "quiz-progress-1718000000000"
        assert quiz_progress_key("a") != quiz_progress_key("b")
