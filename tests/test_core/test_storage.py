"""Tests for labsite.core.storage module."""

import json

import pytest

from labsite.core.storage import (
    KNOWN_KEYS,
    JsonFileStore,
    KeyValueStore,
    MemoryStore,
    PersistenceAdapter,
    PersistenceError,
)


class TestMemoryStore:
    def test_get_set_delete(self):
        backend = MemoryStore()
        backend.set("news", "[]")

        assert backend.get("news") == "[]"
        assert backend.keys() == ["news"]

        backend.delete("news")
        assert backend.get("news") is None
        backend.delete("news")  # deleting twice is fine

    def test_quota(self):
        backend = MemoryStore(quota_bytes=10)
        backend.set("a", "12345")

        with pytest.raises(OSError, match="Quota exceeded"):
            backend.set("b", "123456")

        # Overwriting a key only counts its new size
        backend.set("a", "1234567890")

    def test_satisfies_protocol(self, tmp_path):
        assert isinstance(MemoryStore(), KeyValueStore)
        assert isinstance(JsonFileStore(tmp_path), KeyValueStore)


class TestJsonFileStore:
    def test_one_file_per_key(self, tmp_path):
        backend = JsonFileStore(tmp_path / "store")
        backend.set("people", '[{"id": "member-1"}]')

        path = tmp_path / "store" / "people.json"
        assert path.exists()
        assert json.loads(backend.get("people")) == [{"id": "member-1"}]
        assert backend.keys() == ["people"]

    def test_missing_key(self, tmp_path):
        backend = JsonFileStore(tmp_path / "store")
        assert backend.get("people") is None
        assert backend.keys() == []

    def test_overwrite_snapshots(self, tmp_path):
        backend = JsonFileStore(tmp_path / "store", snapshot_dir=tmp_path / "backups")
        backend.set("news", "[]")
        backend.set("news", '[{"id": "news-1"}]')

        snapshots = list((tmp_path / "backups").glob("news_*.json"))
        assert len(snapshots) == 1
        assert snapshots[0].read_text() == "[]\n"

    def test_delete_snapshots_file(self, tmp_path):
        backend = JsonFileStore(tmp_path / "store", snapshot_dir=tmp_path / "backups")
        backend.set("news", "[]")
        backend.delete("news")

        assert backend.get("news") is None
        assert len(list((tmp_path / "backups").glob("news_*.json"))) == 1

    def test_without_snapshots(self, tmp_path):
        backend = JsonFileStore(tmp_path / "store")
        backend.set("news", "[]")
        backend.set("news", "[1]")
        assert not (tmp_path / "backups").exists()


class TestPersistenceAdapter:
    """Tests for JSON load/save on top of a backend."""

    def test_round_trip(self):
        adapter = PersistenceAdapter(MemoryStore())
        adapter.save("featured", {"project_id": "project-1"})
        assert adapter.load("featured") == {"project_id": "project-1"}

    def test_absent_key(self):
        assert PersistenceAdapter(MemoryStore()).load("projects") is None

    def test_corrupt_value_reads_as_absent(self, caplog):
        adapter = PersistenceAdapter(MemoryStore({"projects": "{not json"}))

        assert adapter.load("projects") is None
        assert "Discarding unreadable value for projects" in caplog.text

    def test_write_failure_raises_persistence_error(self):
        adapter = PersistenceAdapter(MemoryStore(quota_bytes=4))

        with pytest.raises(PersistenceError) as exc_info:
            adapter.save("news", [{"id": "news-1"}])

        assert exc_info.value.keys == ["news"]
        assert isinstance(exc_info.value, OSError)

    def test_unencodable_value(self):
        adapter = PersistenceAdapter(MemoryStore())
        with pytest.raises(PersistenceError, match="Cannot encode"):
            adapter.save("news", {1, 2})

    def test_reset_all_removes_known_keys_only(self):
        backend = MemoryStore({"projects": "[]", "featured": "{}", "unrelated": "1"})
        adapter = PersistenceAdapter(backend)

        removed = adapter.reset_all()

        assert sorted(removed) == ["featured", "projects"]
        assert backend.keys() == ["unrelated"]

    def test_iter_lists_keys(self):
        adapter = PersistenceAdapter(MemoryStore({"news": "[]", "jobs": "[]"}))
        assert sorted(adapter) == ["jobs", "news"]

    def test_storage_info(self):
        adapter = PersistenceAdapter(MemoryStore({"news": "[]", "people": "x" * 100}))
        info = {item.key: item for item in adapter.storage_info()}

        assert info["news"].size_bytes == 2
        assert info["news"].preview == "[]"
        assert info["people"].preview.endswith("...")
        assert len(info["people"].preview) == 63

    def test_export_skips_unreadable(self):
        adapter = PersistenceAdapter(MemoryStore({"news": "[]", "people": "{broken"}))
        assert adapter.export() == {"news": []}


def test_known_keys_cover_collections_and_settings():
    assert len(KNOWN_KEYS) == 12
    assert "topic_colors" in KNOWN_KEYS
    assert "team_image_position" in KNOWN_KEYS
