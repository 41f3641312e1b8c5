"""Tests for labsite.core.backup module."""

import json
from datetime import datetime, timedelta

import pytest

from labsite.core.backup import (
    TIMESTAMP_FORMAT,
    create_snapshot,
    format_size,
    list_snapshots,
    parse_snapshot_timestamp,
    prune_snapshots,
    restore_snapshot,
    safe_write_json,
    safe_write_text,
)


@pytest.fixture
def store_file(tmp_path):
    """A store file with some JSON content."""
    path = tmp_path / "store" / "projects.json"
    path.parent.mkdir()
    path.write_text(json.dumps([{"id": "project-1"}]))
    return path


def _make_snapshot(snapshot_dir, key, when, content="[]"):
    snapshot_dir.mkdir(parents=True, exist_ok=True)
    path = snapshot_dir / f"{key}_{when.strftime(TIMESTAMP_FORMAT)}.json"
    path.write_text(content)
    return path


class TestFormatSize:
    def test_bytes(self):
        assert format_size(512) == "512 B"

    def test_kilobytes(self):
        assert format_size(2048) == "2.0 KB"

    def test_megabytes(self):
        assert format_size(3 * 1024 * 1024) == "3.0 MB"


class TestParseTimestamp:
    def test_valid(self):
        assert parse_snapshot_timestamp("projects_20251212_144234.json") == datetime(2025, 12, 12, 14, 42, 34)

    def test_no_timestamp(self):
        assert parse_snapshot_timestamp("projects.json") is None

    def test_invalid_date(self):
        assert parse_snapshot_timestamp("projects_20251399_999999.json") is None


class TestCreateSnapshot:
    def test_creates_copy(self, store_file, tmp_path):
        snapshot_dir = tmp_path / "backups"
        snapshot = create_snapshot(store_file, snapshot_dir)

        assert snapshot.exists()
        assert snapshot.read_text() == store_file.read_text()
        assert snapshot.name.startswith("projects_")

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            create_snapshot(tmp_path / "nope.json", tmp_path / "backups")


class TestListSnapshots:
    def test_newest_first(self, tmp_path):
        snapshot_dir = tmp_path / "backups"
        now = datetime.now()
        older = _make_snapshot(snapshot_dir, "people", now - timedelta(days=2))
        newer = _make_snapshot(snapshot_dir, "people", now - timedelta(hours=1))

        snapshots = list_snapshots(snapshot_dir, "people")
        assert [s.path for s in snapshots] == [newer, older]
        assert snapshots[0].key == "people"

    def test_key_must_match_exactly(self, tmp_path):
        """team_image must not pick up team_image_position snapshots."""
        snapshot_dir = tmp_path / "backups"
        now = datetime.now()
        _make_snapshot(snapshot_dir, "team_image", now)
        _make_snapshot(snapshot_dir, "team_image_position", now - timedelta(minutes=1))

        assert [s.key for s in list_snapshots(snapshot_dir, "team_image")] == ["team_image"]
        assert len(list_snapshots(snapshot_dir)) == 2

    def test_missing_dir(self, tmp_path):
        assert list_snapshots(tmp_path / "nope") == []


class TestPruneSnapshots:
    def test_keeps_recent_and_newest(self, tmp_path):
        snapshot_dir = tmp_path / "backups"
        now = datetime.now()
        for days in (10, 20, 40, 60):
            _make_snapshot(snapshot_dir, "news", now - timedelta(days=days))

        removed = prune_snapshots(snapshot_dir, "news", keep_last=1, keep_days=30)

        # 10 days survives by count, 20 by age
        assert len(removed) == 2
        assert len(list_snapshots(snapshot_dir, "news")) == 2

    def test_no_age_limit(self, tmp_path):
        snapshot_dir = tmp_path / "backups"
        now = datetime.now()
        for hours in range(4):
            _make_snapshot(snapshot_dir, "news", now - timedelta(hours=hours + 1))

        removed = prune_snapshots(snapshot_dir, "news", keep_last=1, keep_days=None)
        assert len(removed) == 3


class TestRestoreSnapshot:
    def test_restores_and_snapshots_current(self, store_file, tmp_path):
        snapshot_dir = tmp_path / "backups"
        _make_snapshot(snapshot_dir, "projects", datetime.now() - timedelta(days=1), '[{"id": "old"}]')

        restore_snapshot(store_file, snapshot_dir)

        assert json.loads(store_file.read_text()) == [{"id": "old"}]
        # The overwritten version is now the newest snapshot
        newest = list_snapshots(snapshot_dir, "projects")[0]
        assert json.loads(newest.path.read_text()) == [{"id": "project-1"}]

    def test_no_snapshots(self, store_file, tmp_path):
        with pytest.raises(FileNotFoundError):
            restore_snapshot(store_file, tmp_path / "backups")

    def test_index_out_of_range(self, store_file, tmp_path):
        snapshot_dir = tmp_path / "backups"
        _make_snapshot(snapshot_dir, "projects", datetime.now() - timedelta(days=1))

        with pytest.raises(FileNotFoundError, match="out of range"):
            restore_snapshot(store_file, snapshot_dir, index=3)


class TestSafeWrite:
    def test_writes_new_file(self, tmp_path):
        target = tmp_path / "deep" / "dir" / "news.json"
        assert safe_write_text(target, "[]") is None
        assert target.read_text() == "[]\n"

    def test_snapshots_previous_version(self, store_file, tmp_path):
        snapshot_dir = tmp_path / "backups"
        snapshot = safe_write_text(store_file, "[]", snapshot_dir=snapshot_dir)

        assert snapshot is not None
        assert json.loads(snapshot.read_text()) == [{"id": "project-1"}]
        assert store_file.read_text() == "[]\n"

    def test_no_temp_files_left(self, store_file):
        safe_write_text(store_file, "[]")
        assert [p.name for p in store_file.parent.iterdir()] == ["projects.json"]

    def test_safe_write_json(self, tmp_path):
        target = tmp_path / "out.json"
        safe_write_json(target, {"a": [1, 2]})
        assert json.loads(target.read_text()) == {"a": [1, 2]}

    def test_safe_write_json_unserializable(self, tmp_path):
        with pytest.raises(ValueError):
            safe_write_json(tmp_path / "out.json", {"a": object()})
