"""
Snapshot and safe file writing utilities.

Every stored key is a single JSON file. Writes go through a temp file and an
atomic replace; the previous version is kept as a timestamped snapshot and
old snapshots are rotated by count and age.
"""

from __future__ import annotations

import contextlib
import json
import os
import re
import shutil
import tempfile
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

from labsite.core.config import DEFAULT_KEEP_COUNT, DEFAULT_KEEP_DAYS

TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
TIMESTAMP_PATTERN = re.compile(r"_(\d{8}_\d{6})\.")
SNAPSHOT_NAME_PATTERN = re.compile(r"(.+)_\d{8}_\d{6}\.json$")


@dataclass
class SnapshotInfo:
    """A snapshot file on disk."""

    path: Path
    timestamp: datetime
    size_bytes: int
    key: str

    @property
    def age_days(self) -> float:
        return (datetime.now() - self.timestamp).total_seconds() / 86400

    @property
    def size_human(self) -> str:
        return format_size(self.size_bytes)


def format_size(size_bytes: int) -> str:
    """Human-readable byte count."""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    if size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    return f"{size_bytes / (1024 * 1024):.1f} MB"


def parse_snapshot_timestamp(filename: str) -> datetime | None:
    """Extract the timestamp from a name like 'projects_20251212_144234.json'."""
    match = TIMESTAMP_PATTERN.search(filename)
    if match:
        try:
            return datetime.strptime(match.group(1), TIMESTAMP_FORMAT)
        except ValueError:
            return None
    return None


def list_snapshots(snapshot_dir: Path, key: str | None = None) -> list[SnapshotInfo]:
    """List snapshots, newest first.

    Args:
        snapshot_dir: Directory containing snapshots
        key: Only list snapshots of this store key
    """
    snapshot_dir = Path(snapshot_dir)
    if not snapshot_dir.exists():
        return []

    pattern = f"{key}_*.json" if key else "*_[0-9]*_[0-9]*.json"
    snapshots = []
    for path in snapshot_dir.glob(pattern):
        timestamp = parse_snapshot_timestamp(path.name)
        name_match = SNAPSHOT_NAME_PATTERN.match(path.name)
        if not timestamp or not name_match:
            continue
        # "team_image_position_..." also matches the "team_image_*" glob
        if key and name_match.group(1) != key:
            continue
        snapshots.append(
            SnapshotInfo(
                path=path,
                timestamp=timestamp,
                size_bytes=path.stat().st_size,
                key=name_match.group(1),
            )
        )

    return sorted(snapshots, key=lambda s: s.timestamp, reverse=True)


def create_snapshot(file_path: Path, snapshot_dir: Path) -> Path:
    """Copy *file_path* to a timestamped snapshot.

    Raises:
        FileNotFoundError: If file_path doesn't exist
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise FileNotFoundError(f"Cannot snapshot non-existent file: {file_path}")

    snapshot_dir = Path(snapshot_dir)
    snapshot_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime(TIMESTAMP_FORMAT)
    snapshot_path = snapshot_dir / f"{file_path.stem}_{timestamp}{file_path.suffix}"
    shutil.copy2(file_path, snapshot_path)
    return snapshot_path


def prune_snapshots(
    snapshot_dir: Path,
    key: str,
    keep_last: int = DEFAULT_KEEP_COUNT,
    keep_days: int | None = DEFAULT_KEEP_DAYS,
) -> list[Path]:
    """Remove old snapshots of one key.

    A snapshot survives if it is among the newest *keep_last* OR younger than
    *keep_days* days.

    Returns:
        Paths that were removed
    """
    cutoff = datetime.now() - timedelta(days=keep_days) if keep_days is not None else None
    removed = []
    for index, snapshot in enumerate(list_snapshots(snapshot_dir, key)):
        if index < keep_last:
            continue
        if cutoff is None or snapshot.timestamp < cutoff:
            snapshot.path.unlink()
            removed.append(snapshot.path)
    return removed


def restore_snapshot(file_path: Path, snapshot_dir: Path, index: int = 0) -> Path:
    """Restore a store file from one of its snapshots.

    The current file is snapshotted first so a restore can itself be undone.

    Args:
        file_path: Store file to overwrite
        snapshot_dir: Directory containing snapshots
        index: 0 = most recent snapshot, 1 = the one before, ...

    Returns:
        Path of the snapshot that was restored

    Raises:
        FileNotFoundError: If no suitable snapshot exists
    """
    file_path = Path(file_path)
    key = file_path.stem
    snapshots = list_snapshots(snapshot_dir, key)
    if not snapshots:
        raise FileNotFoundError(f"No snapshots found for {key}")
    if index >= len(snapshots):
        raise FileNotFoundError(f"Snapshot index {index} out of range (only {len(snapshots)} snapshots)")

    chosen = snapshots[index]
    # Read first: a snapshot of the current file taken in the same second reuses the name
    restored = chosen.path.read_bytes()
    if file_path.exists():
        create_snapshot(file_path, snapshot_dir)
    file_path.write_bytes(restored)
    return chosen.path


def safe_write_text(
    file_path: Path,
    text: str,
    snapshot_dir: Path | None = None,
    keep_last: int = DEFAULT_KEEP_COUNT,
    keep_days: int | None = DEFAULT_KEEP_DAYS,
) -> Path | None:
    """Atomically replace *file_path* with *text*, snapshotting the old version.

    Args:
        file_path: Target file
        text: New file contents (a trailing newline is added)
        snapshot_dir: Where to keep snapshots (None disables snapshots)
        keep_last: Snapshots always kept per key
        keep_days: Snapshots older than this are pruned (None = no age limit)

    Returns:
        Path to the snapshot if one was created

    Raises:
        OSError: If file operations fail
    """
    file_path = Path(file_path)
    snapshot_path = None

    file_path.parent.mkdir(parents=True, exist_ok=True)

    if snapshot_dir is not None and file_path.exists():
        snapshot_path = create_snapshot(file_path, snapshot_dir)
        prune_snapshots(snapshot_dir, file_path.stem, keep_last, keep_days)

    temp_fd, temp_path = tempfile.mkstemp(
        suffix=file_path.suffix,
        prefix=f".{file_path.name}.",
        dir=file_path.parent,
        text=True,
    )
    try:
        with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
            f.write(text)
            f.write("\n")
            f.flush()
            os.fsync(f.fileno())
        Path(temp_path).replace(file_path)
    except Exception as e:
        with contextlib.suppress(OSError):
            Path(temp_path).unlink()
        raise OSError(f"Failed to write {file_path}: {e}") from e

    return snapshot_path


def safe_write_json(file_path: Path, data: Any, snapshot_dir: Path | None = None) -> Path | None:
    """Serialize *data* and write it with safe_write_text().

    Raises:
        ValueError: If data cannot be serialized to JSON
        OSError: If file operations fail
    """
    try:
        text = json.dumps(data, indent=2, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Cannot serialize data to JSON: {e}") from e
    return safe_write_text(file_path, text, snapshot_dir)
