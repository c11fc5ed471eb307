"""Tests for key-value stores and editor settings."""

import json

import pytest

from jsonkit.config import (
    SETTINGS_KEY,
    EditorConfig,
    config_from_dict,
    load_config,
    save_config,
)
from jsonkit.search import SearchOptions
from jsonkit.storage import JsonFileStore, MemoryStore, StorageError


class TestMemoryStore:
    """In-memory store."""

    def test_get_set_delete(self):
        store = MemoryStore()
        assert store.get("k") is None
        store.set("k", {"a": [1]})
        assert store.get("k") == {"a": [1]}
        store.delete("k")
        assert store.get("k") is None
        store.delete("k")

    def test_values_are_copied(self):
        store = MemoryStore()
        value = {"a": [1]}
        store.set("k", value)
        value["a"].append(2)
        store.get("k")["a"].append(3)
        assert store.get("k") == {"a": [1]}


class TestJsonFileStore:
    """File-backed store."""

    def test_missing_file_is_empty(self, tmp_path):
        store = JsonFileStore(tmp_path / "nope.json")
        assert store.get("k") is None

    def test_set_creates_file(self, tmp_path):
        path = tmp_path / "sub" / "settings.json"
        store = JsonFileStore(path)
        store.set("k", [1, 2])
        store.set("other", "x")
        assert json.loads(path.read_text(encoding="utf-8")) == {"k": [1, 2], "other": "x"}
        assert JsonFileStore(path).get("k") == [1, 2]

    def test_delete(self, tmp_path):
        path = tmp_path / "s.json"
        store = JsonFileStore(path)
        store.set("k", 1)
        store.delete("k")
        store.delete("k")
        assert store.get("k") is None

    def test_corrupt_file_is_empty(self, tmp_path):
        path = tmp_path / "s.json"
        path.write_text("{broken", encoding="utf-8")
        store = JsonFileStore(path)
        assert store.get("k") is None
        store.set("k", 1)
        assert store.get("k") == 1

    def test_non_object_file_is_empty(self, tmp_path):
        path = tmp_path / "s.json"
        path.write_text("[1, 2]", encoding="utf-8")
        assert JsonFileStore(path).get("k") is None

    def test_unwritable_path_raises(self, tmp_path):
        store = JsonFileStore(tmp_path)
        with pytest.raises(StorageError):
            store.set("k", 1)

    def test_storage_error_is_os_error(self):
        assert issubclass(StorageError, OSError)


class TestEditorConfig:
    """Settings defaults, validation and persistence."""

    def test_defaults(self):
        config = EditorConfig()
        assert config.indent_size == 2
        assert config.summary_max_depth == 100
        assert config.schema_id is None
        assert config.search_options() == SearchOptions()

    def test_search_options(self):
        config = EditorConfig(case_sensitive=True, use_regex=True)
        assert config.search_options() == SearchOptions(
            case_sensitive=True, whole_word=False, use_regex=True
        )

    def test_from_dict_keeps_valid_values(self):
        config = config_from_dict({"indent_size": 4, "whole_word": True, "schema_id": "x"})
        assert config.indent_size == 4
        assert config.whole_word is True
        assert config.schema_id == "x"

    def test_from_dict_drops_bad_values(self):
        config = config_from_dict(
            {
                "indent_size": 3,
                "history_max": 0,
                "summary_max_depth": True,
                "use_regex": "yes",
                "colour": "blue",
            }
        )
        assert config == EditorConfig()

    def test_load_missing(self):
        assert load_config(MemoryStore()) == EditorConfig()

    def test_load_non_object(self):
        assert load_config(MemoryStore({SETTINGS_KEY: [1]})) == EditorConfig()

    def test_save_and_load(self, tmp_path):
        store = JsonFileStore(tmp_path / "settings.json")
        config = EditorConfig(indent_size=8, case_sensitive=True, schema_id="tsconfig.json")
        save_config(store, config)
        assert load_config(store) == config
        assert load_config(JsonFileStore(tmp_path / "settings.json")) == config
